import json

import pytest

from gateway.core.error_classifier import (
    GENERIC_UNKNOWN_HINT,
    SUMMARY_MAX_CHARS,
    UpstreamError,
    classify,
    remediation_hint,
    summarize_body,
)
from gateway.core.gateway_types import ErrorKind


@pytest.mark.parametrize(
    "status, body, expected",
    [
        (401, "", ErrorKind.UPSTREAM_UNAUTHORIZED),
        (403, "Forbidden", ErrorKind.UPSTREAM_UNAUTHORIZED),
        (
            400,
            json.dumps({"error": {"code": "401", "message": "Access denied due to invalid subscription key."}}),
            ErrorKind.UPSTREAM_UNAUTHORIZED,
        ),
        (404, "", ErrorKind.UPSTREAM_NOT_FOUND),
        (400, '{"error": {"code": "404", "message": "Resource not found"}}', ErrorKind.UPSTREAM_NOT_FOUND),
        (400, "DeploymentNotFound: missing", ErrorKind.UPSTREAM_NOT_FOUND),
        (429, "", ErrorKind.UPSTREAM_RATE_LIMITED),
        (400, "Too Many Requests", ErrorKind.UPSTREAM_RATE_LIMITED),
        (504, "", ErrorKind.UPSTREAM_TIMEOUT),
        (500, "The operation timed out", ErrorKind.UPSTREAM_TIMEOUT),
        (500, "Internal server error", ErrorKind.UNKNOWN),
        (None, None, ErrorKind.UNKNOWN),
    ],
)
def test_classify(status, body, expected):
    assert classify(status, body) is expected


def test_classify_accepts_bytes_and_dicts():
    assert classify(500, b"Resource not found") is ErrorKind.UPSTREAM_NOT_FOUND
    assert classify(500, {"error": {"message": "rate limit exceeded"}}) is ErrorKind.UPSTREAM_RATE_LIMITED
    assert classify(500, b"\xff\xfe garbage") is ErrorKind.UNKNOWN


def test_summarize_body_extracts_error_message():
    body = json.dumps({"error": {"code": "DeploymentNotFound", "message": "The API deployment does not exist."}})
    assert summarize_body(body) == "The API deployment does not exist."
    assert summarize_body('{"message": "plain message"}') == "plain message"
    assert summarize_body("") is None
    assert summarize_body(None) is None


def test_summarize_body_truncates_and_collapses():
    summary = summarize_body("word   \n " * 200)
    assert len(summary) <= SUMMARY_MAX_CHARS
    assert summary.endswith("...")
    assert "\n" not in summary


def test_remediation_hints():
    hint = remediation_hint(ErrorKind.UPSTREAM_NOT_FOUND, deployment="dall-e-3", endpoint="https://x")
    assert "'dall-e-3'" in hint and "matches exactly" in hint

    assert "AZURE_OPENAI_API_KEY" in remediation_hint(ErrorKind.MISSING_CONFIG, missing=["AZURE_OPENAI_API_KEY"])
    assert remediation_hint(ErrorKind.UNKNOWN) == GENERIC_UNKNOWN_HINT
    assert "boom" in remediation_hint(ErrorKind.UNKNOWN, detail="boom")


def test_upstream_error_from_response():
    err = UpstreamError.from_response(404, '{"error": {"message": "Resource not found"}}')
    assert err.kind is ErrorKind.UPSTREAM_NOT_FOUND
    assert err.status_code == 404
    assert err.detail == "Resource not found"
