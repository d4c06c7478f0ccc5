"""AI assistant ("Tattva AI").

Flow for one chat turn:
1. Take the last message as the query; for personal questions ("recommend me
   ...", "jobs matching my skills") append the member's profile keywords.
2. Embed the search input and fetch the 10 closest search documents.
3. Load platform stats (Redis cache, 5 min).
4. Build the system prompt: stats, retrieved context, user context and
   linking rules for the web client.
5. Run the chat completion and return the reply with its sources.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select

from quantum5ocial.models import Job, Organization, Product, Profile, QnaQuestion
from quantum5ocial.services.errors import ServiceUnavailableError
from quantum5ocial.services.formatting import pick_profile
from quantum5ocial.services.llm import LlmError, chat_completion, embed_text
from quantum5ocial.services.search_index import DocumentMatch, match_documents
from quantum5ocial.settings import get_settings
from quantum5ocial.stores.postgres import get_session
from quantum5ocial.stores.redis import REDIS_ERRORS, get_platform_stats_cache, set_platform_stats_cache

logger = logging.getLogger("uvicorn.error")

CONTEXT_DOCUMENTS = 10

PERSONAL_MARKERS = ("my", "me", "i ", "recommend", "match", "suitable")

NO_CONTEXT = "No relevant documents found."
ANONYMOUS_CONTEXT = "User is anonymous."
NOT_FOUND_REPLY = "I can't find that in the quantum5ocial currently."

TITLE_SYSTEM_PROMPT = """You are a helpful assistant that generates a concise title for a chat conversation based on the user's first message.
- The title should be short (3-5 words max).
- It should summarize the user's intent.
- Do not include quotes or punctuation.
- Do not include "Title:" prefix."""


@dataclass(frozen=True)
class PlatformStats:
    jobs: int = 0
    products: int = 0
    organizations: int = 0
    professionals: int = 0
    questions: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "jobs": self.jobs,
            "products": self.products,
            "organizations": self.organizations,
            "professionals": self.professionals,
            "questions": self.questions,
        }


def is_personal_query(query: str) -> bool:
    q = query.lower()
    return any(marker in q for marker in PERSONAL_MARKERS)


def build_search_input(query: str, user_profile: dict[str, Any] | None) -> str:
    """Query text to embed, enriched with profile keywords for personal questions."""
    if not user_profile or not is_personal_query(query):
        return query
    keywords = " ".join(
        str(user_profile[key])
        for key in ("skills", "focus_areas", "current_title", "role")
        if user_profile.get(key)
    )
    return f"{query} {keywords}" if keywords else query


def format_context(matches: list[DocumentMatch]) -> str:
    if not matches:
        return NO_CONTEXT
    return "\n\n---\n\n".join(f"{m.content}\nID: {m.link}\nType: {m.doc_type}" for m in matches)


def format_user_context(user_profile: dict[str, Any] | None) -> str:
    if not user_profile:
        return ANONYMOUS_CONTEXT
    p = user_profile
    return "\n".join(
        [
            "**Current User Context:**",
            f"- **Name:** {p.get('full_name') or 'Unknown'}",
            f"- **Role:** {p.get('role') or p.get('current_title') or 'Unknown'}",
            f"- **Skills:** {p.get('skills') or 'N/A'}",
            f"- **Focus Areas:** {p.get('focus_areas') or 'N/A'}",
            f"- **Bio:** {p.get('short_bio') or 'N/A'}",
            f"- **ID:** {p.get('id')}",
        ]
    )


def build_system_prompt(stats: PlatformStats, context: str, user_context: str) -> str:
    return f"""You are Tattva AI, an intelligent and helpful AI assistant for Quantum5ocial.
You have access to the following real-time data from the platform:

**Global Stats:**
- Total Jobs Available: {stats.jobs}
- Total Products: {stats.products}
- Total Organizations: {stats.organizations}
- Total Professionals: {stats.professionals}
- Total Community Questions: {stats.questions}

**Search Results (Top {CONTEXT_DOCUMENTS}):**
{context}

{user_context}

Instructions:
- Answer the user's question based ONLY on the provided context.
- If the answer is not in the context, say "{NOT_FOUND_REPLY}"
- Be concise, helpful, and slightly snarky/witty.
- Do not hallucinate jobs or facts not present in the context.
- Filter out the results that are not relevant to the user's question.
- **Formatting**: Use Markdown tables or bulleted lists to present job listings or data clearly. Avoid dense paragraphs for lists.
- **Linking**:
  - When mentioning a Job, you MUST link to it using the format: `[Job Title](/jobs/ID)` (using the ID from the context).
  - When mentioning a Product, you MUST link to it using the format: `[Product Name](/products/ID)`.
  - When mentioning a User/Profile, you MUST link to it using the format: `[Name](/profile/ID)`.
  - When mentioning an Organization, you MUST link to it using the format: `[Name](/orgs/ID)`.
  - Do NOT create links for Q&A questions, threads, or tags.
  - Do NOT create links for STRICTLY anything else other than the 4 types listed above."""


def clean_title(text: str) -> str:
    """Strip quotes, a "Title:" prefix and trailing punctuation from a generated title."""
    t = text.strip().splitlines()[0] if text.strip() else ""
    t = re.sub(r"^\s*title\s*:\s*", "", t, flags=re.IGNORECASE)
    t = t.strip().strip("\"'“”‘’`")
    t = re.sub(r"[.!?:;,]+$", "", t).strip()
    return t or "New chat"


async def _count_platform() -> PlatformStats:
    async with get_session() as session:
        jobs = await session.execute(select(func.count(Job.id)).where(Job.is_published.is_(True)))
        products = await session.execute(select(func.count(Product.id)))
        orgs = await session.execute(select(func.count(Organization.id)).where(Organization.is_active.is_(True)))
        profiles = await session.execute(select(func.count(Profile.id)))
        questions = await session.execute(select(func.count(QnaQuestion.id)))
        return PlatformStats(
            jobs=int(jobs.scalar() or 0),
            products=int(products.scalar() or 0),
            organizations=int(orgs.scalar() or 0),
            professionals=int(profiles.scalar() or 0),
            questions=int(questions.scalar() or 0),
        )


async def get_platform_stats() -> PlatformStats:
    """Platform counters for the prompt (cached in Redis when available)."""
    try:
        cached = await get_platform_stats_cache()
    except REDIS_ERRORS:
        cached = None
    if cached:
        return PlatformStats(**{k: int(v) for k, v in cached.items() if k in PlatformStats.__dataclass_fields__})

    stats = await _count_platform()
    try:
        await set_platform_stats_cache(stats.to_dict())
    except REDIS_ERRORS:
        pass
    return stats


def _ensure_available() -> None:
    if not get_settings().ai_available:
        raise ServiceUnavailableError("AI assistant is not configured", code="AI_UNAVAILABLE")


async def chat(
    messages: list[dict[str, str]],
    user_profile: dict[str, Any] | list[dict[str, Any]] | None = None,
) -> tuple[str, list[DocumentMatch]]:
    """Answer the last message using retrieved platform context.

    `user_profile` may arrive as the profile object or as a one-element list.

    Returns:
        The assistant reply and the documents it was grounded on.

    Raises:
        ServiceUnavailableError: AI disabled or the model call failed.
    """
    _ensure_available()
    user_profile = pick_profile(user_profile)
    query = messages[-1].get("content", "") if messages else ""
    search_input = build_search_input(query, user_profile)

    try:
        embedding = await embed_text(search_input or " ")
        matches = await match_documents(embedding, count=CONTEXT_DOCUMENTS)
        stats = await get_platform_stats()
        system_prompt = build_system_prompt(stats, format_context(matches), format_user_context(user_profile))
        reply = await chat_completion(
            [{"role": "system", "content": system_prompt}]
            + [{"role": m.get("role", "user"), "content": m.get("content", "")} for m in messages],
        )
    except LlmError as e:
        raise ServiceUnavailableError("AI assistant is temporarily unavailable", code="AI_FAILED") from e

    logger.info(f"[assistant] reply chars={len(reply)} sources={len(matches)}")
    return reply, matches


async def generate_title(input_text: str) -> str:
    """Short (3-5 words) title for a conversation's first message."""
    _ensure_available()
    try:
        text = await chat_completion(
            [
                {"role": "system", "content": TITLE_SYSTEM_PROMPT},
                {"role": "user", "content": f"User message: {input_text}"},
            ],
            model=get_settings().openai_model_title,
            temperature=0.3,
            max_tokens=20,
        )
    except LlmError as e:
        raise ServiceUnavailableError("Title generation failed", code="AI_FAILED") from e
    return clean_title(text)
