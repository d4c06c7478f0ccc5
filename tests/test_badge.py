"""Tests for Q5 badge scoring and claims."""

import itertools

import pytest
from sqlalchemy import func, select

from quantum5ocial.models import Profile, ProfileBadgeClaim
from quantum5ocial.services.badge import (
    BADGE_LABELS,
    BadgeAnswers,
    badge_display_label,
    badge_score,
    claim_badge,
    compute_q5_badge,
    level_for_score,
)
from quantum5ocial.stores.postgres import get_session


def answers(involvement: int = 0, contribution: int = 0, impact: int = 0, education: str = "") -> BadgeAnswers:
    return BadgeAnswers(
        involvement=involvement,
        contribution=contribution,
        role_context="",
        education=education,
        impact=impact,
    )


def test_top_answers_give_authority_pending_review():
    a = answers(involvement=4, contribution=4, impact=4, education="PhD")
    assert badge_score(a) == 4 * 18 + 4 * 10 + 6

    result = compute_q5_badge(a)
    assert result.level == 5
    assert result.label == "Q5-Authority"
    assert result.review_status == "pending"
    assert result.rationale == "Authority is reviewed for verification."


def test_zero_answers_give_observer():
    result = compute_q5_badge(answers())
    assert result.level == 0
    assert result.label == "Q5-Observer"
    assert result.review_status == "auto"
    assert "welcome" in result.rationale


def test_involvement_caps_level():
    # Score 4*18 + 3*10 = 102 would reach level 5, but Authority needs impact 4.
    result = compute_q5_badge(answers(involvement=2, contribution=4, impact=3))
    assert result.level == 2
    assert result.label == "Q5-Practitioner"
    assert result.review_status == "auto"


def test_authority_requires_all_three_signals():
    result = compute_q5_badge(answers(involvement=4, contribution=4, impact=3, education="PhD"))
    assert result.level == 4
    assert result.review_status == "auto"


@pytest.mark.parametrize(
    "education,bonus",
    [("PhD", 6), ("Postdoc / Other-not-applicable", 6), ("Master", 3), ("Bachelor", 0), ("", 0)],
)
def test_education_bonus(education: str, bonus: int):
    assert badge_score(answers(contribution=1, education=education)) == 18 + bonus


def test_out_of_range_signals_are_clamped():
    assert badge_score(answers(contribution=9, impact=-3)) == 4 * 18


def test_level_thresholds():
    assert level_for_score(14) == 0
    assert level_for_score(15) == 1
    assert level_for_score(35) == 2
    assert level_for_score(55) == 3
    assert level_for_score(75) == 4
    assert level_for_score(94) == 4
    assert level_for_score(95) == 5


def test_level_is_monotonic_in_contribution_and_impact():
    for involvement, education in itertools.product(range(5), ["", "Master", "PhD"]):
        for fixed in range(5):
            by_contribution = [
                compute_q5_badge(answers(involvement, c, fixed, education)).level for c in range(5)
            ]
            by_impact = [
                compute_q5_badge(answers(involvement, fixed, i, education)).level for i in range(5)
            ]
            assert by_contribution == sorted(by_contribution)
            assert by_impact == sorted(by_impact)


def test_only_level_five_is_pending():
    for inv, con, imp in itertools.product(range(5), repeat=3):
        result = compute_q5_badge(answers(inv, con, imp, "PhD"))
        assert result.label == BADGE_LABELS[result.level]
        if result.level == 5:
            assert (inv, con, imp) == (4, 4, 4)
            assert result.review_status == "pending"
        else:
            assert result.review_status == "auto"


def test_badge_display_label():
    assert badge_display_label(3, "Q5-Expert") == "Q5-Expert"
    assert badge_display_label(2, "  ") == "Q5-Level 2"
    assert badge_display_label(None, None) == ""


@pytest.mark.asyncio
async def test_claim_badge_mirrors_latest_claim_onto_profile(db):
    first, _ = await claim_badge("ada", answers(involvement=1, contribution=1))
    second, claimed_at = await claim_badge("ada", answers(involvement=4, contribution=4, impact=4, education="PhD"))

    assert first.level != second.level
    assert (second.level, second.review_status) == (5, "pending")

    async with get_session() as session:
        claims = (await session.execute(select(func.count()).select_from(ProfileBadgeClaim))).scalar_one()
        claim = (await session.execute(select(ProfileBadgeClaim))).scalar_one()
        profile = await session.get(Profile, "ada")

    assert claims == 1
    assert (claim.involvement, claim.computed_level, claim.education) == (4, 5, "PhD")
    assert profile.q5_badge_level == 5
    assert profile.q5_badge_label == second.label
    assert profile.q5_badge_review_status == "pending"
    assert profile.q5_badge_claimed_at is not None
    assert claimed_at.tzinfo is not None
