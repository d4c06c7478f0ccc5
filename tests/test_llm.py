"""Tests for OpenAI response parsing and client errors."""

import httpx
import pytest

from quantum5ocial.services import llm
from quantum5ocial.services.llm import LlmError, extract_embedding, extract_message_text


def test_extract_message_text():
    data = {"choices": [{"message": {"role": "assistant", "content": "Hello"}}]}
    assert extract_message_text(data) == "Hello"


def test_extract_message_text_malformed():
    assert extract_message_text({}) == ""
    assert extract_message_text({"choices": [{"message": {"content": None}}]}) == ""
    assert extract_message_text("oops") == ""


def test_extract_embedding():
    assert extract_embedding({"data": [{"embedding": [1, 0.5, -2]}]}) == [1.0, 0.5, -2.0]


def test_extract_embedding_missing():
    with pytest.raises(LlmError):
        extract_embedding({"data": []})


@pytest.mark.asyncio
async def test_http_error_becomes_llm_error(monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.settings import get_settings

    monkeypatch.setattr(get_settings(), "ai_enabled", True)
    monkeypatch.setattr(get_settings(), "openai_api_key", "sk-test")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json={"error": {"message": "rate limited"}})

    real_client = httpx.AsyncClient

    def fake_client(*args, **kwargs):
        return real_client(transport=httpx.MockTransport(handler))

    monkeypatch.setattr(llm.httpx, "AsyncClient", fake_client)

    with pytest.raises(LlmError, match="429"):
        await llm.embed_text("qubits")
