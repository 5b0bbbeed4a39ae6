"""Provider/runtime configuration for the gateway.

Architectural role:
    Centralizes upstream credentials, endpoint, deployment identifiers, and API
    versions in one immutable `GatewayConfig`, built once at process start and
    passed explicitly into `gateway.core.engine`.

Model call flow integration:
    - `llm.service.build_chat_payload` consumes `SYSTEM_MESSAGE`.
    - `llm.client` and `image.client` consume the URL builders and `api_key`.
    - `core.config_guard` inspects which fields are present per route.

Determinism:
    Deterministic for a fixed process environment. `.env` files are merged into
    the environment by `load_dotenv()` before values are read.

Failure behavior:
    Missing or blank values are stored as `None` and reported by the
    configuration guard; nothing here raises for absent credentials.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


API_KEY_ENV = "AZURE_OPENAI_API_KEY"
ENDPOINT_ENV = "AZURE_OPENAI_ENDPOINT"
TEXT_DEPLOYMENT_ENV = "AZURE_OPENAI_DEPLOYMENT_NAME"
IMAGE_DEPLOYMENT_ENV = "AZURE_OPENAI_IMAGE_DEPLOYMENT_NAME"

DEFAULT_API_VERSION = "2023-05-15"
DEFAULT_IMAGE_API_VERSION = "2024-02-01"

# Header name carrying the async image-job locator on submit responses.
OPERATION_LOCATION_HEADER = "operation-location"

# Fixed system instruction prepended to every text-completion request.
SYSTEM_MESSAGE = (
    "You are a helpful assistant that can answer questions, generate HTML/CSS/JS "
    "code, fix code bugs, and create images based on user prompts. Respond "
    "concisely unless otherwise requested. Format code nicely with markdown code "
    "blocks."
)

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 800

IMAGE_SIZE = "1024x1024"
IMAGE_COUNT = 1
IMAGE_RESPONSE_FORMAT = "url"


def _env(name: str) -> str | None:
    """Return a stripped environment value, treating blanks as unset."""
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable upstream configuration for one gateway process.

    Relevant environment variables (see `load_config`):
        - `AZURE_OPENAI_API_KEY`
        - `AZURE_OPENAI_ENDPOINT`
        - `AZURE_OPENAI_DEPLOYMENT_NAME`
        - `AZURE_OPENAI_IMAGE_DEPLOYMENT_NAME` (optional, gates the image path)
        - `AZURE_OPENAI_API_VERSION`
        - `AZURE_OPENAI_IMAGE_API_VERSION`
        - `REQUEST_TIMEOUT_SECONDS`
        - `MAX_HISTORY_TURNS`
        - `LOG_LEVEL`
        - `DEBUG`
    """

    api_key: str | None = None
    endpoint: str | None = None
    text_deployment: str | None = None
    image_deployment: str | None = None
    api_version: str = DEFAULT_API_VERSION
    image_api_version: str = DEFAULT_IMAGE_API_VERSION
    request_timeout_seconds: float = 60.0
    max_history_turns: int = 25
    poll_interval_seconds: float = 1.0
    poll_max_attempts: int = 10
    log_level: str = "INFO"
    debug: bool = False

    @property
    def image_enabled(self) -> bool:
        return bool(self.image_deployment)

    def chat_completions_url(self) -> str:
        """Chat-completion endpoint for the text deployment."""
        return (
            f"{self.endpoint}/openai/deployments/{self.text_deployment}"
            f"/chat/completions?api-version={self.api_version}"
        )

    def image_generations_url(self) -> str:
        """Image-generation submit endpoint for the image deployment."""
        return (
            f"{self.endpoint}/openai/deployments/{self.image_deployment}"
            f"/images/generations?api-version={self.image_api_version}"
        )

    def auth_headers(self) -> dict[str, str]:
        return {"api-key": self.api_key or ""}


def load_config() -> GatewayConfig:
    """Build `GatewayConfig` from `.env` and the process environment.

    Returns:
        Frozen configuration. Numeric overrides that fail to parse fall back to
        defaults rather than aborting startup.
    """
    load_dotenv()

    endpoint = _env(ENDPOINT_ENV)
    if endpoint:
        endpoint = endpoint.rstrip("/")

    return GatewayConfig(
        api_key=_env(API_KEY_ENV),
        endpoint=endpoint,
        text_deployment=_env(TEXT_DEPLOYMENT_ENV),
        image_deployment=_env(IMAGE_DEPLOYMENT_ENV),
        api_version=_env("AZURE_OPENAI_API_VERSION") or DEFAULT_API_VERSION,
        image_api_version=_env("AZURE_OPENAI_IMAGE_API_VERSION") or DEFAULT_IMAGE_API_VERSION,
        request_timeout_seconds=_parse_number(_env("REQUEST_TIMEOUT_SECONDS"), 60.0, float),
        max_history_turns=_parse_number(_env("MAX_HISTORY_TURNS"), 25, int),
        log_level=(_env("LOG_LEVEL") or "INFO").upper(),
        debug=_env("DEBUG") == "true",
    )


def _parse_number(raw, default, cast):
    if raw is None:
        return default
    try:
        value = cast(raw)
    except ValueError:
        return default
    return value if value > 0 else default
