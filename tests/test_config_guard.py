import asyncio
from dataclasses import replace

import pytest

from conftest import chat_body, reply
from gateway.core.config_guard import check_configuration, missing_settings
from gateway.core.engine import process_request
from gateway.core.gateway_types import ConversationTurn, ErrorKind, GatewayRequest, Route
from gateway.llm.provider_config import GatewayConfig


def _request(image_mode):
    return GatewayRequest(turns=(ConversationTurn("user", "a red bicycle"),), image_mode=image_mode)


def test_complete_config_passes(config):
    assert missing_settings(config, Route.TEXT) == []
    assert missing_settings(config, Route.IMAGE) == []
    assert check_configuration(config, Route.IMAGE) is None


def test_empty_config_reports_every_missing_setting():
    assert missing_settings(GatewayConfig(), Route.IMAGE) == [
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_DEPLOYMENT_NAME",
        "AZURE_OPENAI_IMAGE_DEPLOYMENT_NAME",
    ]


def test_missing_image_deployment_only_blocks_image_route(config):
    text_only = replace(config, image_deployment=None)

    assert check_configuration(text_only, Route.TEXT) is None

    blocked = check_configuration(text_only, Route.IMAGE)
    assert blocked.error_kind is ErrorKind.MISSING_CONFIG
    assert blocked.configured is False
    assert "AZURE_OPENAI_IMAGE_DEPLOYMENT_NAME" in blocked.content


@pytest.mark.parametrize("field", ["api_key", "endpoint", "text_deployment", "image_deployment"])
@pytest.mark.parametrize("image_mode", [False, True])
def test_missing_config_makes_no_network_calls(config, upstream, fake_sleep, field, image_mode):
    broken = replace(config, **{field: None})
    upstream.chat.append(reply(json=chat_body("should not be used")))
    upstream.submit.append(reply(json={"data": [{"url": "https://x/y.png"}]}))

    result = asyncio.run(
        process_request(_request(image_mode), broken, transport=upstream.transport, sleep=fake_sleep)
    )

    if field == "image_deployment" and not image_mode:
        assert result.ok
        assert len(upstream.requests) == 1
        return

    assert result.error_kind is ErrorKind.MISSING_CONFIG
    assert result.to_payload()["isConfigured"] is False
    assert upstream.requests == []
