"""Mode selector producing the `Route` for core orchestration.

Routing rule:
    The caller-supplied `image_mode` flag is the only input. Message text is
    never inspected; any image-intent hint lives in the client, where the user
    sets the flag explicitly.

Determinism:
    Pure function of the request; no side effects.
"""

from gateway.core.gateway_types import GatewayRequest, Route


def select_route(request: GatewayRequest) -> Route:
    """Return `Route.IMAGE` iff the request explicitly asks for an image."""
    if request.image_mode:
        return Route.IMAGE
    return Route.TEXT
