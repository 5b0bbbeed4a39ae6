"""Request, job, and response data contracts for the gateway.

Architectural role:
    Defines the per-request entities shared by the engine, the text and image
    adapters, and the HTTP/CLI entrypoints. Every instance lives for exactly one
    request/response cycle; nothing here is cached or persisted.

Control-flow interaction:
    - `GatewayRequest` is built by entrypoints and consumed by `engine`.
    - `Route` is produced by `mode_selector.select_route`.
    - `SubmitOutcome` and `JobStatus` are produced by `gateway.image.client`
      transport helpers and consumed by the image orchestrator.
    - `GatewayResponse` is produced by `envelope` and serialized by entrypoints.

Determinism:
    Purely structural. No I/O, no clocks, no randomness.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


VALID_ROLES = ("user", "assistant", "system")


class Route(str, Enum):
    """Upstream capability selected for one request."""

    TEXT = "text"
    IMAGE = "image"


class ErrorKind(str, Enum):
    """Failure taxonomy surfaced to callers in the `error` field."""

    MISSING_CONFIG = "MissingConfig"
    UPSTREAM_UNAUTHORIZED = "UpstreamUnauthorized"
    UPSTREAM_NOT_FOUND = "UpstreamNotFound"
    UPSTREAM_RATE_LIMITED = "UpstreamRateLimited"
    UPSTREAM_TIMEOUT = "UpstreamTimeout"
    UPSTREAM_MALFORMED_RESULT = "UpstreamMalformedResult"
    UNKNOWN = "Unknown"


class JobState(str, Enum):
    """Observable states of an asynchronous image job."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversationTurn:
    """One role-tagged message of a conversation."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            raise ValueError(f"Unsupported conversation role: {self.role!r}")

    def as_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class GatewayRequest:
    """Conversation plus the explicit dispatch flag.

    Attributes:
        turns: Ordered conversation, oldest first.
        image_mode: Sole authority on dispatch; `False` selects the text path.
    """

    turns: tuple[ConversationTurn, ...]
    image_mode: bool = False

    @classmethod
    def from_messages(
        cls,
        messages: list[dict[str, Any]],
        image_mode: bool = False,
    ) -> "GatewayRequest":
        """Build a request from `{role, content}` dictionaries.

        Raises:
            ValueError: When the message list is empty or a role is invalid.
        """
        if not messages:
            raise ValueError("No messages provided")

        turns = tuple(
            ConversationTurn(role=str(msg.get("role")), content=str(msg.get("content", "")))
            for msg in messages
        )
        return cls(turns=turns, image_mode=bool(image_mode))

    @property
    def last_content(self) -> str:
        return self.turns[-1].content if self.turns else ""


@dataclass(frozen=True)
class JobStatus:
    """Parsed status of one image-job poll."""

    state: JobState
    result_url: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class InlineResult:
    """Submit call returned the finished image directly."""

    url: str


@dataclass(frozen=True)
class DeferredJob:
    """Submit call returned an operation locator that must be polled."""

    locator: str


SubmitOutcome = Union[InlineResult, DeferredJob]


@dataclass
class GatewayResponse:
    """Normalized envelope returned for every request.

    `content` is always user-presentable text: assistant prose, an image URL, or
    an error message with a remediation hint.
    """

    is_image: bool
    content: str
    configured: bool = True
    error_kind: ErrorKind | None = None
    detail: str | None = None
    deployment_name: str | None = None
    endpoint: str | None = None
    api_version: str | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase wire shape, omitting unset diagnostics."""
        payload: dict[str, Any] = {
            "isImage": self.is_image,
            "content": self.content,
        }

        if not self.configured:
            payload["isConfigured"] = False
        if self.error_kind is not None:
            payload["error"] = self.error_kind.value
        if self.detail:
            payload["errorDetail"] = self.detail
        if self.deployment_name:
            payload["deploymentName"] = self.deployment_name
        if self.endpoint:
            payload["endpoint"] = self.endpoint
        if self.api_version:
            payload["apiVersion"] = self.api_version

        return payload
