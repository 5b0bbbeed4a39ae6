"""
HTTP API adapter for the chat gateway.

Architectural role:
- Expose the gateway as a single JSON request/response endpoint.
- Answer CORS preflight requests for the browser client.
- Parse and validate the inbound payload, then delegate to
  `gateway.core.engine.process_request`.
- Serialize the `GatewayResponse` envelope to the wire shape.

Endpoint responsibilities:
- `OPTIONS /azure-chat`: empty 200 with permissive CORS headers.
- `POST /azure-chat`: `{messages, forceImage?}` -> `{isImage, content, ...}`.
- `GET /healthz`: liveness plus whether the image route is configured.

Request lifecycle (`POST /azure-chat`):
1. Parse request JSON and validate it against `ChatRequest`.
2. Build a `GatewayRequest`; `forceImage` is the only image-mode signal.
3. Run the engine with the process configuration and a disconnect check.
4. Return the envelope with CORS headers.

Error handling strategy:
- Upstream failures arrive as envelopes and are returned with HTTP 200.
- `MissingConfig` envelopes are returned with HTTP 500.
- Malformed JSON, schema violations, and unexpected faults are caught here and
  returned as a generic `Unknown` envelope with HTTP 500.

Side effects:
- Builds `GatewayConfig` once at import time via `build_default_app()`.
- Emits request debug logs only when `DEBUG == "true"`.
"""

import asyncio
import logging
from typing import Literal

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from gateway.core.engine import process_request
from gateway.core.envelope import unexpected_error_response
from gateway.core.gateway_types import ErrorKind, GatewayRequest, GatewayResponse
from gateway.llm.provider_config import GatewayConfig, load_config


logger = logging.getLogger(__name__)

CHAT_PATH = "/azure-chat"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


# ============================================================
# Request Schema
# ============================================================

class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    """Inbound payload sent by the browser client."""

    messages: list[ChatTurn] = Field(..., min_length=1)
    forceImage: bool = False

    def to_gateway_request(self) -> GatewayRequest:
        return GatewayRequest.from_messages(
            [m.model_dump() for m in self.messages],
            image_mode=self.forceImage,
        )


def envelope_response(result: GatewayResponse) -> JSONResponse:
    """Wrap an envelope with the transport status and CORS headers."""
    status_code = 500 if result.error_kind is ErrorKind.MISSING_CONFIG else 200
    return JSONResponse(
        status_code=status_code,
        content=result.to_payload(),
        headers=CORS_HEADERS,
    )


# ============================================================
# Application Factory
# ============================================================

def create_app(
    config: GatewayConfig | None = None,
    transport=None,
    sleep=asyncio.sleep,
) -> FastAPI:
    """Build the FastAPI application around one immutable configuration.

    Args:
        config: Gateway configuration; loaded from the environment when omitted.
        transport: Optional `httpx` transport forwarded to the engine.
        sleep: Awaitable delay used between image polls.
    """
    config = config or load_config()

    app = FastAPI(title="Chat Gateway")
    app.state.config = config

    @app.options(CHAT_PATH)
    async def preflight():
        return Response(status_code=200, headers=CORS_HEADERS)

    @app.get("/healthz")
    async def healthz():
        return JSONResponse(
            content={"status": "ok", "imageEnabled": config.image_enabled},
            headers=CORS_HEADERS,
        )

    @app.post(CHAT_PATH)
    async def chat(request: Request):
        """
        Handle one chat request.

        Input validation behavior:
        - Body must be JSON matching `ChatRequest` with at least one message.
        - Roles are limited to `user`, `assistant`, `system`.

        Error handling strategy:
        - Any parsing or validation failure, and any fault escaping the engine,
          yields the generic `Unknown` envelope with HTTP 500.
        """
        try:
            body = await request.json()
            chat_request = ChatRequest.model_validate(body)
            gateway_request = chat_request.to_gateway_request()

            if config.debug:
                logger.info(
                    "Incoming request turns=%d forceImage=%s",
                    len(gateway_request.turns),
                    gateway_request.image_mode,
                )

            result = await process_request(
                gateway_request,
                config,
                transport=transport,
                sleep=sleep,
                is_cancelled=request.is_disconnected,
            )

            if config.debug:
                logger.info("Outgoing envelope error=%s", result.error_kind)

            return envelope_response(result)

        except Exception:
            logger.exception("Failed to handle chat request")
            return JSONResponse(
                status_code=500,
                content=unexpected_error_response().to_payload(),
                headers=CORS_HEADERS,
            )

    return app


def build_default_app() -> FastAPI:
    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
    )
    return create_app(config)


app = build_default_app()
