import pytest

from gateway.core import envelope
from gateway.core.gateway_types import ErrorKind, Route
from gateway.llm.provider_config import GatewayConfig


def test_success_payloads_have_no_diagnostics():
    assert envelope.text_response("hello").to_payload() == {"isImage": False, "content": "hello"}
    assert envelope.image_response("https://x/y.png").to_payload() == {
        "isImage": True,
        "content": "https://x/y.png",
    }


@pytest.mark.parametrize("kind", list(ErrorKind))
@pytest.mark.parametrize("route", list(Route))
def test_error_content_is_always_presentable(kind, route, config):
    response = envelope.error_response(kind, route, config)
    payload = response.to_payload()

    assert response.content.strip()
    assert not response.content.lstrip().startswith("{")
    assert payload["error"] == kind.value
    assert payload["isImage"] is False
    assert "test-key" not in str(payload)


def test_error_content_without_any_configuration():
    response = envelope.error_response(ErrorKind.UPSTREAM_NOT_FOUND, Route.TEXT, GatewayConfig())
    assert response.content.strip()
    assert "deploymentName" not in response.to_payload()


def test_missing_config_marks_unconfigured(config):
    response = envelope.error_response(
        ErrorKind.MISSING_CONFIG,
        Route.IMAGE,
        config,
        missing=["AZURE_OPENAI_IMAGE_DEPLOYMENT_NAME"],
    )
    payload = response.to_payload()
    assert payload["isConfigured"] is False
    assert "AZURE_OPENAI_IMAGE_DEPLOYMENT_NAME" in payload["content"]


def test_diagnostics_follow_route(config):
    text = envelope.error_response(ErrorKind.UNKNOWN, Route.TEXT, config).to_payload()
    image = envelope.error_response(ErrorKind.UNKNOWN, Route.IMAGE, config).to_payload()

    assert text["deploymentName"] == config.text_deployment
    assert text["apiVersion"] == config.api_version
    assert image["deploymentName"] == config.image_deployment
    assert image["apiVersion"] == config.image_api_version


def test_job_failed_keeps_reason_verbatim(config):
    reason = "Your request was rejected as a result of our safety system."
    response = envelope.job_failed_response(reason, config, ErrorKind.UPSTREAM_NOT_FOUND)
    assert reason in response.content
    assert response.detail == reason


def test_job_failed_tolerates_non_string_reasons(config):
    numeric = envelope.job_failed_response(500, config, ErrorKind.UNKNOWN)
    assert numeric.content == f"{envelope.IMAGE_FAILURE_HEADLINE} The upstream reported: 500"
    assert numeric.detail == "500"

    empty = envelope.job_failed_response(None, config, ErrorKind.UNKNOWN)
    assert empty.content.startswith(envelope.IMAGE_FAILURE_HEADLINE)
    assert empty.detail is None


def test_unexpected_error_response():
    payload = envelope.unexpected_error_response().to_payload()
    assert payload["error"] == "Unknown"
    assert "unexpected error" in payload["content"]
    assert "endpoint" not in payload
