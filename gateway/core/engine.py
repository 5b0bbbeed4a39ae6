"""Core request orchestration for the gateway.

Architectural role:
    Provides the single execution pipeline used by the HTTP and CLI entrypoints
    to turn one `GatewayRequest` into one `GatewayResponse`.

Control-flow model:
    1. Select the route from the explicit image flag (`mode_selector`).
    2. Run the configuration guard for that route; stop with `MissingConfig`
       before any network call when settings are absent.
    3. Dispatch to the text completion client or the image orchestrator over
       one per-request `httpx.AsyncClient`.
    4. Convert classified failures into error envelopes (`envelope`).

Error handling strategy:
    - `UpstreamError` -> classified error envelope.
    - `PollAbandoned` -> cancellation envelope.
    - Any other `Exception` -> logged with traceback, generic `Unknown`
      envelope. `asyncio.CancelledError` is not intercepted.

Concurrency:
    Upstream calls for one request are awaited sequentially. No state is shared
    between requests; the configuration object is immutable.
"""

import asyncio
import logging

import httpx

from gateway.core import envelope
from gateway.core.config_guard import check_configuration
from gateway.core.error_classifier import UpstreamError
from gateway.core.gateway_types import GatewayRequest, GatewayResponse, Route
from gateway.core.mode_selector import select_route
from gateway.image.service import ImageJobFailed, PollAbandoned, generate_image
from gateway.llm.client import send_chat_completion
from gateway.llm.provider_config import GatewayConfig
from gateway.llm.service import cap_history


logger = logging.getLogger(__name__)


async def _run_text(
    client: httpx.AsyncClient,
    request: GatewayRequest,
    config: GatewayConfig,
) -> GatewayResponse:
    turns = cap_history(request.turns, config.max_history_turns)
    reply = await send_chat_completion(client, config, turns)
    return envelope.text_response(reply)


async def _run_image(
    client: httpx.AsyncClient,
    request: GatewayRequest,
    config: GatewayConfig,
    sleep,
    is_cancelled,
) -> GatewayResponse:
    url = await generate_image(
        client,
        config,
        request.last_content,
        sleep=sleep,
        is_cancelled=is_cancelled,
    )
    return envelope.image_response(url)


async def process_request(
    request: GatewayRequest,
    config: GatewayConfig,
    transport: httpx.AsyncBaseTransport | None = None,
    sleep=asyncio.sleep,
    is_cancelled=None,
) -> GatewayResponse:
    """Process one gateway request end to end.

    Args:
        request: Conversation and explicit image flag.
        config: Immutable process configuration.
        transport: Optional `httpx` transport override (tests, proxies).
        sleep: Awaitable delay used between image polls.
        is_cancelled: Optional async predicate; when it returns `True` an
            in-flight image poll is abandoned.

    Returns:
        `GatewayResponse`; this function does not raise for upstream or
        internal failures.
    """
    route = select_route(request)

    blocked = check_configuration(config, route)
    if blocked is not None:
        return blocked

    logger.info("Dispatching request route=%s turns=%d", route.value, len(request.turns))

    try:
        async with httpx.AsyncClient(
            timeout=config.request_timeout_seconds,
            transport=transport,
        ) as client:
            if route is Route.IMAGE:
                return await _run_image(client, request, config, sleep, is_cancelled)
            return await _run_text(client, request, config)

    except ImageJobFailed as exc:
        return envelope.job_failed_response(exc.reason, config, exc.kind)

    except UpstreamError as exc:
        logger.warning("Upstream failure route=%s kind=%s detail=%s", route.value, exc.kind.value, exc.detail)
        return envelope.error_response(exc.kind, route, config, detail=exc.detail)

    except PollAbandoned:
        return envelope.cancelled_response(config)

    except Exception:
        logger.exception("Unexpected gateway failure route=%s", route.value)
        return envelope.unexpected_error_response()
