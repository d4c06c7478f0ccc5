"""AI assistant endpoints.

POST /v1/chat       - answer the last message using platform search context
POST /v1/chat/title - short title for a new conversation
"""

from fastapi import APIRouter

from quantum5ocial.schemas.chat import ChatRequest, ChatResponse, ChatSource, TitleRequest, TitleResponse
from quantum5ocial.services.assistant import chat, generate_title

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat_turn(request: ChatRequest) -> ChatResponse:
    reply, matches = await chat(
        [m.model_dump() for m in request.messages],
        user_profile=request.user_profile,
    )
    return ChatResponse(
        reply=reply,
        sources=[
            ChatSource(doc_type=m.doc_type, link=m.link, title=m.title, similarity=round(m.similarity, 4))
            for m in matches
        ],
    )


@router.post("/title", response_model=TitleResponse)
async def title(request: TitleRequest) -> TitleResponse:
    return TitleResponse(title=await generate_title(request.input_text))
