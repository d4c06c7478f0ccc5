"""Schemas for the AI assistant and search index administration."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = ""


class ChatRequest(BaseModel):
    messages: list[ChatMessage] = Field(min_length=1, max_length=50)
    user_profile: dict[str, Any] | list[dict[str, Any]] | None = None


class ChatSource(BaseModel):
    doc_type: str
    link: str
    title: str | None = None
    similarity: float


class ChatResponse(BaseModel):
    reply: str
    sources: list[ChatSource] = Field(default_factory=list)


class TitleRequest(BaseModel):
    input_text: str = Field(min_length=1, max_length=4000)


class TitleResponse(BaseModel):
    title: str


class SearchSyncRequest(BaseModel):
    type: str
    data: dict[str, Any]
    action: Literal["upsert", "delete"] = "upsert"


class SearchSyncResponse(BaseModel):
    success: bool


class IndexAllResponse(BaseModel):
    message: str
    inserted_count: int
    skipped_count: int
    errors: list[dict[str, str]] = Field(default_factory=list)
