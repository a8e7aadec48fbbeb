"""Unit tests for the Stability AI generation client."""

import base64
from typing import Any, Dict, Optional
from unittest.mock import MagicMock, patch

import pytest
import requests

from artgate.models import ProviderError, ProviderErrorKind
from artgate.services import GenerationClient, classify_failure_message

IMAGE = b"\xff\xd8\xff\xe0fake-jpeg"


def make_response(
    status_code: int = 200,
    payload: Any = None,
    headers: Optional[Dict[str, str]] = None,
    text: str = "",
) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    response.text = text
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


def ok_payload(image: bytes = IMAGE, finish_reason: str = "SUCCESS") -> Dict[str, Any]:
    return {
        "artifacts": [
            {"base64": base64.b64encode(image).decode("ascii"), "finishReason": finish_reason, "seed": 1}
        ]
    }


class TestGenerationClient:
    """Test cases for GenerationClient."""

    @pytest.fixture
    def client(self, mock_config) -> GenerationClient:
        return GenerationClient(mock_config)

    @pytest.fixture
    def session(self):
        with patch("artgate.services.generation_client.requests.Session") as session_cls:
            yield session_cls.return_value.__enter__.return_value

    def test_endpoint_and_payload(self, client) -> None:
        """Requests target the configured engine with fixed sampling settings."""
        assert client.endpoint == (
            "https://provider.test/v1/generation/stable-diffusion-xl-1024-v1-0/text-to-image"
        )
        assert client.build_payload("a lighthouse") == {
            "text_prompts": [{"text": "a lighthouse"}],
            "cfg_scale": 7.0,
            "height": 1024,
            "width": 1024,
            "steps": 30,
            "samples": 1,
        }

    @pytest.mark.asyncio
    async def test_generate_decodes_first_artifact(self, client, session) -> None:
        session.post.return_value = make_response(payload=ok_payload())

        image = await client.generate("a lighthouse")

        assert image == IMAGE
        _, kwargs = session.post.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer sk-test"
        assert kwargs["timeout"] == 60
        assert kwargs["json"]["text_prompts"] == [{"text": "a lighthouse"}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,expected",
        [
            (400, ProviderErrorKind.PROMPT_REJECTED),
            (402, ProviderErrorKind.INSUFFICIENT_CREDITS),
            (429, ProviderErrorKind.RATE_LIMITED),
            (504, ProviderErrorKind.TIMEOUT),
            (500, ProviderErrorKind.UNKNOWN),
        ],
    )
    async def test_http_errors_are_categorized(self, client, session, status, expected) -> None:
        session.post.return_value = make_response(status, payload={"name": "some_error", "message": "nope"})

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is expected

    @pytest.mark.asyncio
    async def test_rate_limit_carries_retry_after(self, client, session) -> None:
        session.post.return_value = make_response(
            429, payload={"name": "rate_limit_exceeded"}, headers={"Retry-After": "12"}
        )

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.retry_after == 12

    @pytest.mark.asyncio
    async def test_transport_timeout(self, client, session) -> None:
        session.post.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_connection_error_is_unknown(self, client, session) -> None:
        session.post.side_effect = requests.exceptions.ConnectionError("connection refused")

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_classified_by_message(self, client, session) -> None:
        """Failures outside the request path still surface as ProviderError."""
        session.post.side_effect = RuntimeError("upstream said 402 insufficient_credits")

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.INSUFFICIENT_CREDITS

    @pytest.mark.asyncio
    async def test_non_object_artifact_is_unknown(self, client, session) -> None:
        session.post.return_value = make_response(payload={"artifacts": ["not-an-object"]})

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_content_filtered_artifact_is_prompt_rejection(self, client, session) -> None:
        session.post.return_value = make_response(payload=ok_payload(finish_reason="CONTENT_FILTERED"))

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.PROMPT_REJECTED

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [{"artifacts": []}, {"unexpected": True}, {"artifacts": [{"base64": "***not-base64***"}]}],
    )
    async def test_malformed_success_body(self, client, session, payload) -> None:
        session.post.return_value = make_response(payload=payload)

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.UNKNOWN

    @pytest.mark.asyncio
    async def test_non_json_success_body(self, client, session) -> None:
        session.post.return_value = make_response(payload=None, text="<html>")

        with pytest.raises(ProviderError) as exc_info:
            await client.generate("a lighthouse")

        assert exc_info.value.kind is ProviderErrorKind.UNKNOWN


class TestClassifyFailureMessage:
    """Last-resort message matching."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("insufficient_credits: balance is 0", ProviderErrorKind.INSUFFICIENT_CREDITS),
            ("HTTP 402 Payment Required", ProviderErrorKind.INSUFFICIENT_CREDITS),
            ("connect ETIMEDOUT", ProviderErrorKind.TIMEOUT),
            ("Read timed out", ProviderErrorKind.TIMEOUT),
            ("rate_limit exceeded", ProviderErrorKind.RATE_LIMITED),
            ("status 429", ProviderErrorKind.RATE_LIMITED),
            ("invalid_prompts", ProviderErrorKind.PROMPT_REJECTED),
            ("something broke", ProviderErrorKind.UNKNOWN),
            ("", ProviderErrorKind.UNKNOWN),
        ],
    )
    def test_classification(self, message, expected) -> None:
        assert classify_failure_message(message) is expected
