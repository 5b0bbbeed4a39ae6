import sys
from pathlib import Path

import httpx
import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gateway.llm.provider_config import GatewayConfig  # noqa: E402


ENDPOINT = "https://example-resource.openai.azure.com"
TEXT_DEPLOYMENT = "gpt-4o-chat"
IMAGE_DEPLOYMENT = "dall-e-3-images"
LOCATOR = f"{ENDPOINT}/openai/operations/images/job-123?api-version=2024-02-01"


def reply(status=200, json=None, text=None, headers=None):
    """Describe one scripted upstream response; built fresh for every request."""
    return {"status": status, "json": json, "text": text, "headers": headers or {}}


def chat_body(content):
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


def job_body(status, url=None, reason=None):
    body = {"id": "job-123", "status": status}
    if url is not None:
        body["result"] = {"data": [{"url": url}]}
    if reason is not None:
        body["error"] = {"code": "contentFilter", "message": reason}
    return body


class FakeUpstream:
    """Scripted Azure-shaped upstream served through `httpx.MockTransport`.

    Each queue pops one reply per request; the last reply repeats once the
    queue is down to a single entry. A queue entry may also be an exception
    instance, which is raised instead of answering.
    """

    def __init__(self):
        self.requests = []
        self.chat = []
        self.submit = []
        self.poll = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if request.method == "POST" and path.endswith("/chat/completions"):
            queue = self.chat
        elif request.method == "POST" and path.endswith("/images/generations"):
            queue = self.submit
        elif request.method == "GET":
            queue = self.poll
        else:
            return httpx.Response(405)

        if not queue:
            return httpx.Response(500, text="no scripted reply")

        scripted = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(scripted, Exception):
            raise scripted

        if scripted["json"] is not None:
            return httpx.Response(scripted["status"], json=scripted["json"], headers=scripted["headers"])
        return httpx.Response(scripted["status"], text=scripted["text"] or "", headers=scripted["headers"])

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def calls(self, kind):
        if kind == "chat":
            return [r for r in self.requests if r.url.path.endswith("/chat/completions")]
        if kind == "submit":
            return [r for r in self.requests if r.url.path.endswith("/images/generations")]
        if kind == "poll":
            return [r for r in self.requests if r.method == "GET"]
        raise ValueError(kind)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def config():
    return GatewayConfig(
        api_key="test-key",
        endpoint=ENDPOINT,
        text_deployment=TEXT_DEPLOYMENT,
        image_deployment=IMAGE_DEPLOYMENT,
    )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def fake_sleep():
    return RecordingSleep()
