"""Configuration guard run before any upstream call.

The guard is the first gate of every request: when a setting the selected route
needs is absent, the request ends here with a `MissingConfig` envelope and no
network traffic. It is never retried. A missing image deployment only closes the
image route; the text route stays usable.
"""

import logging

from gateway.core.envelope import error_response
from gateway.core.gateway_types import ErrorKind, GatewayResponse, Route
from gateway.llm.provider_config import (
    API_KEY_ENV,
    ENDPOINT_ENV,
    IMAGE_DEPLOYMENT_ENV,
    TEXT_DEPLOYMENT_ENV,
    GatewayConfig,
)


logger = logging.getLogger(__name__)


def missing_settings(config: GatewayConfig, route: Route) -> list[str]:
    """Return environment variable names the route needs but lacks."""
    required = [
        (API_KEY_ENV, config.api_key),
        (ENDPOINT_ENV, config.endpoint),
        (TEXT_DEPLOYMENT_ENV, config.text_deployment),
    ]
    if route is Route.IMAGE:
        required.append((IMAGE_DEPLOYMENT_ENV, config.image_deployment))

    return [name for name, value in required if not value]


def check_configuration(config: GatewayConfig, route: Route) -> GatewayResponse | None:
    """Return a `MissingConfig` envelope, or `None` when the route may proceed."""
    missing = missing_settings(config, route)
    if not missing:
        return None

    logger.error("Missing required configuration for %s route: %s", route.value, ", ".join(missing))
    return error_response(ErrorKind.MISSING_CONFIG, route, config, missing=missing)
