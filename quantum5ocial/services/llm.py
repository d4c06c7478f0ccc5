"""OpenAI-compatible client for embeddings and chat completions.

Used by the assistant, the search index and recommendations. Calls go straight
to the REST API with httpx; there is no retry (failures are logged and raised
as LlmError so callers can degrade).
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from quantum5ocial.models.search_document import EMBEDDING_DIMENSIONS
from quantum5ocial.settings import get_settings

logger = logging.getLogger("uvicorn.error")

_TIMEOUT = 30.0


class LlmError(RuntimeError):
    pass


def _headers() -> dict[str, str]:
    settings = get_settings()
    return {"Authorization": f"Bearer {settings.openai_api_key}", "Content-Type": "application/json"}


def _endpoint(path: str) -> str:
    return get_settings().openai_base_url.rstrip("/") + path


def _ensure_available() -> None:
    if not get_settings().ai_available:
        raise LlmError("AI features are disabled (AI_ENABLED=false or OPENAI_API_KEY missing)")


def extract_message_text(data: Any) -> str:
    """Pull choices[0].message.content out of a chat completions response."""
    if isinstance(data, dict) and isinstance(data.get("choices"), list):
        for choice in data["choices"]:
            if isinstance(choice, dict):
                msg = choice.get("message")
                if isinstance(msg, dict) and isinstance(msg.get("content"), str):
                    return msg["content"]
    return ""


def extract_embedding(data: Any) -> list[float]:
    """Pull data[0].embedding out of an embeddings response."""
    if isinstance(data, dict) and isinstance(data.get("data"), list) and data["data"]:
        first = data["data"][0]
        if isinstance(first, dict) and isinstance(first.get("embedding"), list):
            return [float(x) for x in first["embedding"]]
    raise LlmError("Embedding response has no data[0].embedding")


async def _post(path: str, body: dict[str, Any]) -> dict[str, Any]:
    url = _endpoint(path)
    try:
        async with httpx.AsyncClient(timeout=_TIMEOUT) as client:
            r = await client.post(url, headers=_headers(), json=body)
            r.raise_for_status()
            return r.json()
    except httpx.HTTPStatusError as e:
        status = int(e.response.status_code) if e.response is not None else 0
        response_text = e.response.text[:500] if e.response is not None else ""
        logger.error(f"[llm] OpenAI HTTP {status} url={url} model={body.get('model')} response={response_text}")
        raise LlmError(f"OpenAI HTTP {status}") from e
    except httpx.HTTPError as e:
        logger.exception(f"[llm] request failed url={url}")
        raise LlmError(str(e)) from e


async def embed_text(text: str) -> list[float]:
    """Embed a single text (newlines flattened, as the index does)."""
    _ensure_available()
    settings = get_settings()
    data = await _post(
        "/embeddings",
        {
            "model": settings.openai_model_embedding,
            "input": text.replace("\n", " "),
            "dimensions": EMBEDDING_DIMENSIONS,
        },
    )
    return extract_embedding(data)


async def chat_completion(
    messages: list[dict[str, str]],
    *,
    model: str | None = None,
    temperature: float = 0.7,
    max_tokens: int = 1200,
) -> str:
    """Run a chat completion and return the assistant text."""
    _ensure_available()
    settings = get_settings()
    data = await _post(
        "/chat/completions",
        {
            "model": model or settings.openai_model_chat,
            "messages": messages,
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        },
    )
    return extract_message_text(data)
