"""Image-generation transport client.

Processing flow:
    1. `submit_image_job`: POST the prompt to the image deployment.
    2. Resolve the submit response into a `SubmitOutcome`:
       - `InlineResult(url)` when the body already carries `data[0].url`;
       - `DeferredJob(locator)` when an `operation-location` header is present.
    3. `fetch_job_status`: GET the locator and parse it into a `JobStatus`.

Two upstream shapes:
    Some deployments answer the submit call synchronously with the finished
    image; others accept the job and hand back a locator to poll. The shape is
    detected per response, never assumed from configuration.

Error handling strategy:
    - Submit failures raise `UpstreamError` (classified) and stop the request.
    - Poll failures raise `TransientPollError`; the orchestrator counts them as
      spent attempts and keeps polling.

Security considerations:
    The `api-key` header is sent on both submit and poll calls; it is never
    logged.
"""

import json
import logging

import httpx

from gateway.core.error_classifier import UpstreamError
from gateway.core.gateway_types import DeferredJob, ErrorKind, InlineResult, JobState, JobStatus
from gateway.llm.provider_config import (
    IMAGE_COUNT,
    IMAGE_RESPONSE_FORMAT,
    IMAGE_SIZE,
    OPERATION_LOCATION_HEADER,
    GatewayConfig,
)


logger = logging.getLogger(__name__)

SUCCEEDED_STATES = {"succeeded"}
FAILED_STATES = {"failed", "canceled", "cancelled"}


class TransientPollError(RuntimeError):
    """One poll attempt failed in a way that does not end the job."""


def build_image_payload(config: GatewayConfig, prompt: str) -> dict:
    return {
        "prompt": prompt,
        "n": IMAGE_COUNT,
        "size": IMAGE_SIZE,
        "response_format": IMAGE_RESPONSE_FORMAT,
        "model": config.image_deployment,
    }


def _first_url(container) -> str | None:
    """Return `container["data"][0]["url"]` when present and non-empty."""
    if not isinstance(container, dict):
        return None
    items = container.get("data")
    if not isinstance(items, list) or not items:
        return None
    first = items[0]
    if not isinstance(first, dict):
        return None
    url = first.get("url")
    return url if isinstance(url, str) and url else None


async def submit_image_job(
    client: httpx.AsyncClient,
    config: GatewayConfig,
    prompt: str,
):
    """Submit one image-generation job.

    Args:
        client: Shared per-request HTTP client.
        config: Active configuration with an image deployment.
        prompt: Text prompt (the last conversation turn).

    Returns:
        `InlineResult` or `DeferredJob`.

    Failure handling:
        - Transport timeout -> `UpstreamError(UpstreamTimeout)`
        - Other transport error -> `UpstreamError(Unknown)`
        - Non-2xx -> `UpstreamError(classify(status, body))`
        - 2xx with neither inline result nor locator ->
          `UpstreamError(UpstreamMalformedResult)`
    """
    url = config.image_generations_url()
    payload = build_image_payload(config, prompt)

    logger.info("Submitting image generation job deployment=%s", config.image_deployment)

    try:
        response = await client.post(
            url,
            headers={**config.auth_headers(), "Content-Type": "application/json"},
            json=payload,
        )
    except httpx.TimeoutException as exc:
        logger.warning("Image submit timed out: %s", exc)
        raise UpstreamError(ErrorKind.UPSTREAM_TIMEOUT, detail="image submit timed out") from exc
    except httpx.RequestError as exc:
        logger.warning("Image submit transport error: %s", exc)
        raise UpstreamError(ErrorKind.UNKNOWN, detail="could not reach the image endpoint") from exc

    if not response.is_success:
        logger.error(
            "Image submit failed status=%s body=%s",
            response.status_code,
            response.text[:500],
        )
        raise UpstreamError.from_response(response.status_code, response.text)

    try:
        body = response.json()
    except ValueError:
        body = None

    inline_url = _first_url(body)
    if inline_url:
        logger.info("Image submit returned an inline result")
        return InlineResult(url=inline_url)

    locator = response.headers.get(OPERATION_LOCATION_HEADER)
    if locator:
        logger.info("Image submit accepted; polling operation locator")
        return DeferredJob(locator=locator)

    logger.error("Image submit returned neither a result nor an operation locator")
    raise UpstreamError(
        ErrorKind.UPSTREAM_MALFORMED_RESULT,
        detail="image submit returned neither a result nor an operation locator",
        status_code=response.status_code,
    )


def _reason_text(value) -> str | None:
    # Job error fields may be numbers or nested objects.
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def parse_job_status(data) -> JobStatus:
    """Parse one poll body of shape `{status, result?, error?}`.

    Unknown status strings (`notRunning`, `running`, ...) are pending.
    """
    if not isinstance(data, dict):
        raise TransientPollError("poll body was not a JSON object")

    status = str(data.get("status") or "").strip().lower()

    if status in SUCCEEDED_STATES:
        return JobStatus(JobState.SUCCEEDED, result_url=_first_url(data.get("result")))

    if status in FAILED_STATES:
        error = data.get("error")
        if isinstance(error, dict):
            reason = _reason_text(error.get("message")) or _reason_text(error.get("code"))
        else:
            reason = _reason_text(error)
        return JobStatus(JobState.FAILED, reason=reason or f"job {status}")

    return JobStatus(JobState.PENDING)


async def fetch_job_status(
    client: httpx.AsyncClient,
    config: GatewayConfig,
    locator: str,
) -> JobStatus:
    """GET the operation locator once.

    Raises:
        TransientPollError: Non-2xx status, transport error, or unreadable body.
    """
    try:
        response = await client.get(locator, headers=config.auth_headers())
    except httpx.RequestError as exc:
        raise TransientPollError(f"poll transport error: {exc}") from exc

    if not response.is_success:
        raise TransientPollError(f"poll returned status {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        raise TransientPollError("poll body was not JSON") from exc

    return parse_job_status(data)
