"""Tests for the assistant's prompt building."""

import pytest

from quantum5ocial.services.assistant import (
    NO_CONTEXT,
    NOT_FOUND_REPLY,
    PlatformStats,
    build_search_input,
    build_system_prompt,
    chat,
    clean_title,
    format_context,
    format_user_context,
    is_personal_query,
)
from quantum5ocial.services.errors import ServiceUnavailableError
from quantum5ocial.services.search_index import DocumentMatch

PROFILE = {
    "id": "u1",
    "full_name": "Ada",
    "skills": "qiskit",
    "focus_areas": "error correction",
    "role": "Researcher",
}


def test_is_personal_query():
    assert is_personal_query("Recommend jobs for me")
    assert is_personal_query("which products are suitable")
    assert not is_personal_query("list quantum startups in Berlin")


def test_build_search_input_adds_profile_keywords_for_personal_queries():
    assert build_search_input("jobs matching my skills", PROFILE) == (
        "jobs matching my skills qiskit error correction Researcher"
    )


def test_build_search_input_leaves_generic_queries():
    assert build_search_input("list quantum startups", PROFILE) == "list quantum startups"
    assert build_search_input("recommend jobs for me", None) == "recommend jobs for me"


def test_format_context():
    assert format_context([]) == NO_CONTEXT
    matches = [
        DocumentMatch(doc_type="job", link="j1", title="A", content="Type: Job\nTitle: A", similarity=0.9),
        DocumentMatch(doc_type="organization", link="acme", title="Acme", content="Type: Organization", similarity=0.8),
    ]
    assert format_context(matches) == (
        "Type: Job\nTitle: A\nID: j1\nType: job\n\n---\n\nType: Organization\nID: acme\nType: organization"
    )


def test_format_user_context():
    assert format_user_context(None) == "User is anonymous."
    text = format_user_context(PROFILE)
    assert text.startswith("**Current User Context:**")
    assert "- **Name:** Ada" in text
    assert "- **Bio:** N/A" in text
    assert "- **ID:** u1" in text


def test_system_prompt_contains_stats_context_and_rules():
    prompt = build_system_prompt(PlatformStats(jobs=3, professionals=7), "CTX", "USER")
    assert "Total Jobs Available: 3" in prompt
    assert "Total Professionals: 7" in prompt
    assert "CTX" in prompt and "USER" in prompt
    assert NOT_FOUND_REPLY in prompt
    assert "[Job Title](/jobs/ID)" in prompt


@pytest.mark.parametrize(
    "raw,expected",
    [
        ('"Quantum Jobs In Berlin"', "Quantum Jobs In Berlin"),
        ("Title: Error Correction Basics.", "Error Correction Basics"),
        ("  Cryostat Pricing!\nextra line", "Cryostat Pricing"),
        ("", "New chat"),
        ('"."', "New chat"),
    ],
)
def test_clean_title(raw: str, expected: str):
    assert clean_title(raw) == expected


@pytest.mark.asyncio
async def test_chat_unavailable_when_ai_disabled(monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.settings import get_settings

    monkeypatch.setattr(get_settings(), "ai_enabled", False)
    with pytest.raises(ServiceUnavailableError) as e:
        await chat([{"role": "user", "content": "hi"}])
    assert e.value.code == "AI_UNAVAILABLE"


@pytest.mark.asyncio
async def test_chat_accepts_profile_wrapped_in_a_list(monkeypatch: pytest.MonkeyPatch):
    from quantum5ocial.services import assistant
    from quantum5ocial.settings import get_settings

    settings = get_settings()
    monkeypatch.setattr(settings, "ai_enabled", True)
    monkeypatch.setattr(settings, "openai_api_key", "sk-test")
    seen: dict = {}

    async def fake_embed(text: str):
        seen["search_input"] = text
        return [0.1, 0.2]

    async def fake_match(embedding, count=10, **kwargs):
        return []

    async def fake_stats():
        return PlatformStats(jobs=1, products=2, organizations=3, professionals=4, questions=5)

    async def fake_completion(messages, **kwargs):
        seen["system"] = messages[0]["content"]
        return "Here are some roles."

    monkeypatch.setattr(assistant, "embed_text", fake_embed)
    monkeypatch.setattr(assistant, "match_documents", fake_match)
    monkeypatch.setattr(assistant, "get_platform_stats", fake_stats)
    monkeypatch.setattr(assistant, "chat_completion", fake_completion)

    reply, matches = await chat([{"role": "user", "content": "recommend me jobs"}], user_profile=[PROFILE])

    assert reply == "Here are some roles."
    assert matches == []
    assert seen["search_input"] == "recommend me jobs qiskit error correction Researcher"
    assert "- **Name:** Ada" in seen["system"]
