"""Q5 badge scoring and claims.

The badge level (0-5) is computed from five self-reported signals:
- involvement (0-4): how deeply the member works in quantum tech; caps the level
- contribution (0-4): weight 18
- impact (0-4): weight 10
- education: bonus 6 (PhD / Postdoc) or 3 (Master)
- role_context: stored for reviewers, not scored

Score thresholds 15/35/55/75/95 map to levels 1-5. Authority (5) additionally
requires involvement, impact and contribution all at 4, and is always queued for
manual review.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select

from quantum5ocial.models import ProfileBadgeClaim
from quantum5ocial.services.members import ensure_profile_row
from quantum5ocial.stores.postgres import get_session

SIGNAL_MIN = 0
SIGNAL_MAX = 4

_CONTRIBUTION_WEIGHT = 18
_IMPACT_WEIGHT = 10

_EDUCATION_BONUS = {
    "PhD": 6,
    "Postdoc / Other-not-applicable": 6,
    "Master": 3,
}

# (minimum score, level), checked from highest
_LEVEL_THRESHOLDS = [
    (95, 5),
    (75, 4),
    (55, 3),
    (35, 2),
    (15, 1),
]

BADGE_LABELS = {
    0: "Q5-Observer",
    1: "Q5-Initiate",
    2: "Q5-Practitioner",
    3: "Q5-Expert",
    4: "Q5-Pioneer",
    5: "Q5-Authority",
}

AUTHORITY_LEVEL = 5

REVIEW_AUTO = "auto"
REVIEW_PENDING = "pending"

_RATIONALE_WELCOME = "You’re joining the ecosystem—welcome in."
_RATIONALE_REVIEW = "Authority is reviewed for verification."
_RATIONALE_SIGNALS = "Based on your contribution + impact signals."


@dataclass(frozen=True)
class BadgeAnswers:
    """Self-reported survey answers."""

    involvement: int
    contribution: int
    role_context: str
    education: str
    impact: int


@dataclass(frozen=True)
class BadgeResult:
    level: int
    label: str
    review_status: str
    rationale: str


def _clamp(n: int, lo: int = SIGNAL_MIN, hi: int = SIGNAL_MAX) -> int:
    return max(lo, min(hi, n))


def badge_score(answers: BadgeAnswers) -> int:
    """Weighted score before thresholds (0..118)."""
    return (
        _clamp(answers.contribution) * _CONTRIBUTION_WEIGHT
        + _clamp(answers.impact) * _IMPACT_WEIGHT
        + _EDUCATION_BONUS.get(answers.education, 0)
    )


def level_for_score(score: int) -> int:
    for minimum, level in _LEVEL_THRESHOLDS:
        if score >= minimum:
            return level
    return 0


def qualifies_for_authority(answers: BadgeAnswers) -> bool:
    return (
        _clamp(answers.involvement) >= SIGNAL_MAX
        and answers.impact >= SIGNAL_MAX
        and answers.contribution >= SIGNAL_MAX
    )


def compute_q5_badge(answers: BadgeAnswers) -> BadgeResult:
    """Compute the badge for a set of answers.

    Pure and deterministic. The level is capped at the involvement value unless
    the Authority condition holds.
    """
    level = level_for_score(badge_score(answers))

    if not qualifies_for_authority(answers):
        level = min(level, _clamp(answers.involvement))

    label = BADGE_LABELS.get(level, BADGE_LABELS[0])
    review_status = REVIEW_PENDING if level == AUTHORITY_LEVEL else REVIEW_AUTO

    if level == 0:
        rationale = _RATIONALE_WELCOME
    elif level == AUTHORITY_LEVEL:
        rationale = _RATIONALE_REVIEW
    else:
        rationale = _RATIONALE_SIGNALS

    return BadgeResult(level=level, label=label, review_status=review_status, rationale=rationale)


def badge_display_label(level: int | None, label: str | None) -> str:
    """Label shown on profile cards ("" when the member has no badge)."""
    if label and label.strip():
        return label.strip()
    if level is not None:
        return f"Q5-Level {level}"
    return ""


async def claim_badge(user_id: str, answers: BadgeAnswers) -> tuple[BadgeResult, datetime]:
    """Store the claim (one row per user) and mirror the result onto the profile.

    A member without a profile row gets one.

    Returns:
        The stored result and the claim timestamp.
    """
    result = compute_q5_badge(answers)
    claimed_at = datetime.now(timezone.utc)

    async with get_session() as session:
        profile = await ensure_profile_row(session, user_id)

        values = {
            "involvement": answers.involvement,
            "contribution": answers.contribution,
            "role_context": answers.role_context,
            "education": answers.education,
            "impact": answers.impact,
            "computed_level": result.level,
            "computed_label": result.label,
            "review_status": result.review_status,
        }
        row = (
            await session.execute(select(ProfileBadgeClaim).where(ProfileBadgeClaim.user_id == user_id))
        ).scalar_one_or_none()
        if row is None:
            row = ProfileBadgeClaim(user_id=user_id)
            session.add(row)
        for key, value in values.items():
            setattr(row, key, value)
        row.updated_at = claimed_at

        profile.q5_badge_level = row.computed_level
        profile.q5_badge_label = row.computed_label
        profile.q5_badge_review_status = row.review_status
        profile.q5_badge_claimed_at = claimed_at

        stored = BadgeResult(
            level=row.computed_level,
            label=row.computed_label,
            review_status=row.review_status,
            rationale=result.rationale,
        )

    return stored, claimed_at
