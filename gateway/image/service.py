"""Image synthesis orchestrator.

Role in pipeline:
    - Receives the prompt and configuration from `gateway.core.engine`.
    - Submits one job and resolves the submit outcome (inline vs deferred).
    - Polls deferred jobs on a fixed interval under a bounded attempt count.
    - Returns the image URL or raises a classified `UpstreamError`.

State machine:
    Init -> Submitted -> {Polling -> {Succeeded | Failed | TimedOut}}
                       | {Succeeded synchronously}
                       | {SubmitFailed}

Polling rules:
    - At most `config.poll_max_attempts` GETs, each preceded by a cooperative
      `sleep(config.poll_interval_seconds)`.
    - Non-2xx, transport errors, and unreadable bodies spend one attempt.
    - `failed` stops immediately with the upstream reason verbatim.
    - `succeeded` without a result URL is `UpstreamMalformedResult`.
    - Attempts exhausted while pending is `UpstreamTimeout`.
    - When `is_cancelled()` reports a gone caller, polling is abandoned before
      the next attempt.

Determinism:
    Deterministic for fixed upstream responses; timing is injected through
    `sleep` so tests never wait on a real clock.
"""

import asyncio
import logging

import httpx

from gateway.core.error_classifier import UpstreamError, classify
from gateway.core.gateway_types import DeferredJob, ErrorKind, InlineResult, JobState
from gateway.image.client import TransientPollError, fetch_job_status, submit_image_job
from gateway.llm.provider_config import GatewayConfig


logger = logging.getLogger(__name__)


class PollAbandoned(RuntimeError):
    """The caller went away while the job was still being polled."""


class ImageJobFailed(UpstreamError):
    """The upstream job reached a terminal `failed` state."""

    def __init__(self, reason: str) -> None:
        kind = classify(None, reason)
        # Timeout is reserved for attempts exhausted while still pending.
        if kind is ErrorKind.UPSTREAM_TIMEOUT:
            kind = ErrorKind.UNKNOWN
        super().__init__(kind, detail=reason)
        self.reason = reason


async def poll_image_job(
    client: httpx.AsyncClient,
    config: GatewayConfig,
    job: DeferredJob,
    sleep=asyncio.sleep,
    is_cancelled=None,
) -> str:
    """Poll a deferred job until it reaches a terminal state.

    Args:
        client: Shared per-request HTTP client.
        config: Active configuration (interval, attempt ceiling, API key).
        job: Locator returned by the submit call.
        sleep: Awaitable delay function, `asyncio.sleep` in production.
        is_cancelled: Optional async predicate reporting a disconnected caller.

    Returns:
        URL of the first generated image.

    Raises:
        ImageJobFailed: Job status became `failed`.
        UpstreamError: Malformed success or attempts exhausted.
        PollAbandoned: Caller disconnected mid-poll.
    """
    max_attempts = max(1, config.poll_max_attempts)

    for attempt in range(1, max_attempts + 1):
        if is_cancelled is not None and await is_cancelled():
            logger.info("Caller disconnected; abandoning image job after %d attempts", attempt - 1)
            raise PollAbandoned("caller disconnected during image polling")

        await sleep(config.poll_interval_seconds)

        try:
            status = await fetch_job_status(client, config, job.locator)
        except TransientPollError as exc:
            logger.warning("Image poll attempt %d/%d failed: %s", attempt, max_attempts, exc)
            continue

        if status.state is JobState.SUCCEEDED:
            if not status.result_url:
                raise UpstreamError(
                    ErrorKind.UPSTREAM_MALFORMED_RESULT,
                    detail="image job succeeded without a result",
                )
            logger.info("Image job succeeded after %d attempts", attempt)
            return status.result_url

        if status.state is JobState.FAILED:
            logger.warning("Image job failed after %d attempts: %s", attempt, status.reason)
            raise ImageJobFailed(status.reason)

        logger.debug("Image job pending (attempt %d/%d)", attempt, max_attempts)

    logger.warning("Image job still pending after %d attempts", max_attempts)
    raise UpstreamError(
        ErrorKind.UPSTREAM_TIMEOUT,
        detail=f"image job still pending after {max_attempts} attempts",
    )


async def generate_image(
    client: httpx.AsyncClient,
    config: GatewayConfig,
    prompt: str,
    sleep=asyncio.sleep,
    is_cancelled=None,
) -> str:
    """Submit an image job and drive it to completion.

    Returns:
        Result image URL, from the submit body or from polling.
    """
    outcome = await submit_image_job(client, config, prompt)

    if isinstance(outcome, InlineResult):
        return outcome.url

    return await poll_image_job(
        client,
        config,
        outcome,
        sleep=sleep,
        is_cancelled=is_cancelled,
    )
