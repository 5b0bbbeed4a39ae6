"""Upstream failure classification and remediation hints.

Purpose:
    Map heterogeneous upstream failures (HTTP status codes, JSON error bodies,
    plain-text bodies, job failure reasons) onto the fixed `ErrorKind` taxonomy,
    and attach an operator-actionable hint to each kind.

Classification model:
    - Rule-based only: status-code checks first, then lowercase substring
      patterns over the raw body.
    - Evaluation order is fixed: unauthorized, not found, rate limited,
      timeout, unknown.

Failure handling:
    `classify`, `summarize_body`, and `remediation_hint` never raise. Undecodable
    or unexpected inputs fall back to `ErrorKind.UNKNOWN` and a truncated text
    summary.

Security considerations:
    Hints may echo endpoint and deployment names. API keys are never included.
"""

import json
import re

from gateway.core.gateway_types import ErrorKind


SUMMARY_MAX_CHARS = 200

UNAUTHORIZED_PATTERNS = (
    "unauthorized",
    "access denied",
    "invalid subscription key",
    "invalid api key",
    "permissiondenied",
)
_AUTH_CODE_RE = re.compile(r"\b(401|403)\b")

NOT_FOUND_PATTERNS = ("resource not found", "deploymentnotfound")
RATE_LIMIT_PATTERNS = ("rate limit", "ratelimit", "too many requests")
TIMEOUT_PATTERNS = ("timed out", "timeout")

REMEDIATION_HINTS = {
    ErrorKind.MISSING_CONFIG: (
        "Set {missing} in the gateway environment and restart the service."
    ),
    ErrorKind.UPSTREAM_UNAUTHORIZED: (
        "Check that the API key is valid for {endpoint}."
    ),
    ErrorKind.UPSTREAM_NOT_FOUND: (
        "Verify the deployment identifier '{deployment}' matches exactly the "
        "deployment name configured at {endpoint}."
    ),
    ErrorKind.UPSTREAM_RATE_LIMITED: (
        "The upstream rate limit was reached. Wait a moment and try again."
    ),
    ErrorKind.UPSTREAM_TIMEOUT: (
        "The upstream did not finish in time. Please try again, perhaps with a "
        "simpler prompt."
    ),
    ErrorKind.UPSTREAM_MALFORMED_RESULT: (
        "The upstream answered without a usable result. Please try again."
    ),
    ErrorKind.UNKNOWN: "Upstream said: {detail}",
}

GENERIC_UNKNOWN_HINT = "Please try again or contact support if this persists."


class UpstreamError(RuntimeError):
    """Classified failure raised at the boundary of one upstream call.

    Attributes:
        kind: Classified `ErrorKind`.
        status_code: HTTP status when one was received.
        detail: Short user-presentable summary of the upstream failure.
    """

    def __init__(
        self,
        kind: ErrorKind,
        detail: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"{kind.value}: {detail or 'no detail'}")
        self.kind = kind
        self.detail = detail
        self.status_code = status_code

    @classmethod
    def from_response(cls, status_code: int, raw_body) -> "UpstreamError":
        """Classify a non-2xx response into an `UpstreamError`."""
        return cls(
            classify(status_code, raw_body),
            detail=summarize_body(raw_body),
            status_code=status_code,
        )


def _body_text(raw_body) -> str:
    if raw_body is None:
        return ""
    if isinstance(raw_body, bytes):
        return raw_body.decode("utf-8", errors="replace")
    if isinstance(raw_body, str):
        return raw_body
    try:
        return json.dumps(raw_body)
    except (TypeError, ValueError):
        return str(raw_body)


def classify(status_code: int | None, raw_body) -> ErrorKind:
    """Classify an upstream failure.

    Args:
        status_code: HTTP status, or `None` when the failure came from a job
            status payload rather than an HTTP response.
        raw_body: Response body as str, bytes, or already-decoded JSON.

    Returns:
        Matching `ErrorKind`; `ErrorKind.UNKNOWN` when nothing specific matches.
    """
    body = _body_text(raw_body).lower()

    if status_code in (401, 403) or _AUTH_CODE_RE.search(body):
        return ErrorKind.UPSTREAM_UNAUTHORIZED
    if any(p in body for p in UNAUTHORIZED_PATTERNS):
        return ErrorKind.UPSTREAM_UNAUTHORIZED

    if status_code == 404 or any(p in body for p in NOT_FOUND_PATTERNS):
        return ErrorKind.UPSTREAM_NOT_FOUND

    if status_code == 429 or any(p in body for p in RATE_LIMIT_PATTERNS):
        return ErrorKind.UPSTREAM_RATE_LIMITED

    if status_code in (408, 504) or any(p in body for p in TIMEOUT_PATTERNS):
        return ErrorKind.UPSTREAM_TIMEOUT

    return ErrorKind.UNKNOWN


def summarize_body(raw_body) -> str | None:
    """Reduce an upstream body to a short human-readable summary.

    JSON bodies of the common `{"error": {"message": ...}}` / `{"message": ...}`
    shapes yield their message; anything else is whitespace-collapsed and
    truncated to `SUMMARY_MAX_CHARS`.
    """
    text = _body_text(raw_body).strip()
    if not text:
        return None

    data = raw_body if isinstance(raw_body, dict) else None
    if data is None:
        try:
            data = json.loads(text)
        except ValueError:
            data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            text = str(error["message"])
        elif isinstance(error, str) and error:
            text = error
        elif data.get("message"):
            text = str(data["message"])

    text = " ".join(text.split())
    if len(text) > SUMMARY_MAX_CHARS:
        text = text[: SUMMARY_MAX_CHARS - 3].rstrip() + "..."
    return text


def remediation_hint(
    kind: ErrorKind,
    deployment: str | None = None,
    endpoint: str | None = None,
    detail: str | None = None,
    missing: list[str] | None = None,
) -> str:
    """Render the fixed hint template for `kind`."""
    if kind is ErrorKind.UNKNOWN and not detail:
        return GENERIC_UNKNOWN_HINT

    template = REMEDIATION_HINTS.get(kind, GENERIC_UNKNOWN_HINT)
    return template.format(
        deployment=deployment or "(not set)",
        endpoint=endpoint or "the configured endpoint",
        detail=detail or "",
        missing=", ".join(missing) if missing else "the required settings",
    )
