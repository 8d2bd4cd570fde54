"""Unit tests for GeminiService with a mocked google.genai client."""

import time
from unittest.mock import MagicMock

import pytest

from gemini_chat.infrastructure.ai.gemini_service import GeminiService
from gemini_chat.infrastructure.exceptions import (
    ConfigurationError,
    GenerationError,
    GenerationTimeoutError,
)


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text="  Hi there!\n")
    return client


class TestGeminiService:

    def test_requires_api_key_without_client(self):
        with pytest.raises(ConfigurationError) as exc_info:
            GeminiService(api_key=None)
        assert "GOOGLE_API_KEY" in exc_info.value.details["missing_keys"]

    async def test_generate_text_strips_reply(self, mock_client):
        service = GeminiService(api_key=None, model="gemini-test", client=mock_client)

        reply = await service.generate_text("User: Hello\n\nAssistant:", timeout_seconds=5)

        assert reply == "Hi there!"
        kwargs = mock_client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "User: Hello\n\nAssistant:"

    async def test_timeout_maps_to_generation_timeout(self, mock_client):
        mock_client.models.generate_content.side_effect = lambda **_: time.sleep(0.5)
        service = GeminiService(api_key=None, client=mock_client)

        with pytest.raises(GenerationTimeoutError) as exc_info:
            await service.generate_text("prompt", timeout_seconds=0.05)

        assert exc_info.value.timeout_seconds == 0.05

    async def test_api_error_maps_to_generation_error(self, mock_client):
        mock_client.models.generate_content.side_effect = RuntimeError("quota exhausted")
        service = GeminiService(api_key=None, client=mock_client)

        with pytest.raises(GenerationError) as exc_info:
            await service.generate_text("prompt", timeout_seconds=5)

        assert exc_info.value.message == "Gemini API rate limit exceeded"
        assert isinstance(exc_info.value.original_error, RuntimeError)

    async def test_empty_reply_is_an_error(self, mock_client):
        mock_client.models.generate_content.return_value = MagicMock(text="")
        service = GeminiService(api_key=None, client=mock_client)

        with pytest.raises(GenerationError, match="Empty response"):
            await service.generate_text("prompt", timeout_seconds=5)
