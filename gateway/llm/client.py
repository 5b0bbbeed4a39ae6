"""Chat-completion transport client.

Architectural role:
    Executes the single HTTP call of the text path and materializes the
    assistant reply from the response body.

Model invocation flow:
    `engine` -> `service.build_chat_payload(turns)` -> `send_chat_completion`
    -> `choices[0].message.content`.

Retry behavior:
    No retry loop is implemented. The text path is interactive, so transient
    failures are surfaced to the caller after one attempt.

Failure handling model:
    Every failure is raised as `UpstreamError` with a classified `ErrorKind`:
        - non-2xx response -> `classify(status, body)`
        - transport timeout -> `UpstreamTimeout`
        - other transport errors -> `Unknown`
        - 2xx without a usable reply -> `UpstreamMalformedResult`
    The engine converts these into envelopes; nothing escapes to the caller.
"""

import logging

import httpx

from gateway.core.error_classifier import UpstreamError
from gateway.core.gateway_types import ErrorKind
from gateway.llm.provider_config import GatewayConfig
from gateway.llm.service import build_chat_payload


logger = logging.getLogger(__name__)


def extract_reply(data) -> str:
    """Return `choices[0].message.content` from a completion body.

    Raises:
        UpstreamError: `UpstreamMalformedResult` when the shape is missing or
            the content is empty.
    """
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise UpstreamError(
            ErrorKind.UPSTREAM_MALFORMED_RESULT,
            detail="completion response had no choices",
        ) from None

    if not isinstance(content, str) or not content.strip():
        raise UpstreamError(
            ErrorKind.UPSTREAM_MALFORMED_RESULT,
            detail="completion response had empty content",
        )
    return content


async def send_chat_completion(
    client: httpx.AsyncClient,
    config: GatewayConfig,
    turns,
) -> str:
    """Send one chat-completion request and return the assistant text.

    Args:
        client: Shared per-request HTTP client.
        config: Active configuration (endpoint, deployment, key, API version).
        turns: Ordered `ConversationTurn` items, already capped by the caller.

    Returns:
        Assistant reply text.

    Raises:
        UpstreamError: For any failure, already classified.
    """
    url = config.chat_completions_url()
    payload = build_chat_payload(turns)

    logger.info(
        "Sending chat completion request deployment=%s turns=%d",
        config.text_deployment,
        len(payload["messages"]) - 1,
    )

    try:
        response = await client.post(
            url,
            headers={**config.auth_headers(), "Content-Type": "application/json"},
            json=payload,
        )
    except httpx.TimeoutException as exc:
        logger.warning("Chat completion timed out: %s", exc)
        raise UpstreamError(ErrorKind.UPSTREAM_TIMEOUT, detail="request timed out") from exc
    except httpx.RequestError as exc:
        logger.warning("Chat completion transport error: %s", exc)
        raise UpstreamError(ErrorKind.UNKNOWN, detail="could not reach the completion endpoint") from exc

    if not response.is_success:
        logger.error(
            "Chat completion failed status=%s body=%s",
            response.status_code,
            response.text[:500],
        )
        raise UpstreamError.from_response(response.status_code, response.text)

    try:
        data = response.json()
    except ValueError:
        raise UpstreamError(
            ErrorKind.UPSTREAM_MALFORMED_RESULT,
            detail="completion response was not JSON",
            status_code=response.status_code,
        ) from None

    return extract_reply(data)
