"""Response envelope builder.

Every request, whichever path it took and however it failed, leaves the gateway
as one `GatewayResponse`. This module owns the user-facing wording so that
`content` is always a non-empty sentence, never a stack trace or raw JSON.

Error envelopes also carry operator diagnostics (deployment, endpoint, API
version) so a misconfigured deployment can be spotted from the browser console.
"""

from gateway.core.error_classifier import GENERIC_UNKNOWN_HINT, remediation_hint
from gateway.core.gateway_types import ErrorKind, GatewayResponse, Route
from gateway.llm.provider_config import GatewayConfig


TEXT_FAILURE_HEADLINE = "I'm sorry, I couldn't process your request."
IMAGE_FAILURE_HEADLINE = "I'm sorry, I couldn't generate that image."

HEADLINES = {
    (Route.IMAGE, ErrorKind.UPSTREAM_TIMEOUT): (
        "The image generation took too long to process."
    ),
    (Route.TEXT, ErrorKind.UPSTREAM_TIMEOUT): (
        "The assistant took too long to respond."
    ),
    (Route.TEXT, ErrorKind.MISSING_CONFIG): (
        "The assistant is not configured yet."
    ),
    (Route.IMAGE, ErrorKind.MISSING_CONFIG): (
        "Image generation is not configured yet."
    ),
}

UNEXPECTED_ERROR_MESSAGE = (
    "I encountered an unexpected error processing your request. Please try "
    "again or contact support if this persists."
)

CANCELLED_MESSAGE = "The request was cancelled before the image was ready."


def text_response(content: str) -> GatewayResponse:
    return GatewayResponse(is_image=False, content=content)


def image_response(url: str) -> GatewayResponse:
    return GatewayResponse(is_image=True, content=url)


def _deployment_for(route: Route, config: GatewayConfig) -> str | None:
    if route is Route.IMAGE:
        return config.image_deployment
    return config.text_deployment


def _api_version_for(route: Route, config: GatewayConfig) -> str:
    if route is Route.IMAGE:
        return config.image_api_version
    return config.api_version


def error_response(
    kind: ErrorKind,
    route: Route,
    config: GatewayConfig,
    detail: str | None = None,
    missing: list[str] | None = None,
) -> GatewayResponse:
    """Build the envelope for a classified failure.

    Args:
        kind: Classified failure.
        route: Path the request was dispatched to.
        config: Active configuration, used for diagnostics and hints.
        detail: Short upstream-provided reason, reproduced verbatim in
            `content` for job failures and unknown errors.
        missing: Environment variable names for `MissingConfig`.
    """
    deployment = _deployment_for(route, config)

    headline = HEADLINES.get((route, kind))
    if headline is None:
        headline = IMAGE_FAILURE_HEADLINE if route is Route.IMAGE else TEXT_FAILURE_HEADLINE

    hint = remediation_hint(
        kind,
        deployment=deployment,
        endpoint=config.endpoint,
        detail=detail,
        missing=missing,
    )

    return GatewayResponse(
        is_image=False,
        content=f"{headline} {hint}",
        configured=kind is not ErrorKind.MISSING_CONFIG,
        error_kind=kind,
        detail=detail,
        deployment_name=deployment,
        endpoint=config.endpoint,
        api_version=_api_version_for(route, config),
    )


def job_failed_response(reason, config: GatewayConfig, kind: ErrorKind) -> GatewayResponse:
    """Envelope for an image job that reached the `failed` state.

    Always opens with the plain image-failure headline, whatever `kind` the
    reason was classified as, and ends with the upstream reason verbatim.
    """
    reason = "" if reason is None else str(reason)
    response = error_response(kind, Route.IMAGE, config, detail=reason or None)

    parts = [IMAGE_FAILURE_HEADLINE]
    if kind is not ErrorKind.UNKNOWN:
        parts.append(
            remediation_hint(
                kind,
                deployment=response.deployment_name,
                endpoint=config.endpoint,
                detail=reason,
            )
        )
    if reason:
        parts.append(f"The upstream reported: {reason}")
    else:
        parts.append(GENERIC_UNKNOWN_HINT)

    response.content = " ".join(parts)
    return response


def cancelled_response(config: GatewayConfig) -> GatewayResponse:
    response = error_response(ErrorKind.UNKNOWN, Route.IMAGE, config)
    response.content = CANCELLED_MESSAGE
    return response


def unexpected_error_response() -> GatewayResponse:
    """Envelope for the outer catch-all; carries no upstream diagnostics."""
    return GatewayResponse(
        is_image=False,
        content=UNEXPECTED_ERROR_MESSAGE,
        error_kind=ErrorKind.UNKNOWN,
    )
