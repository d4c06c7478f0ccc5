"""Tests for small org, feed and profile helpers."""

from quantum5ocial.models import Profile
from quantum5ocial.services.feed import dedupe_preserving_order
from quantum5ocial.services.orgs import slugify
from quantum5ocial.services.profiles import interest_text


def test_slugify():
    assert slugify("IBM Quantum (Zürich)") == "ibm-quantum-zurich"
    assert slugify("  --Qubit   Labs--  ") == "qubit-labs"
    assert slugify("量子") == ""
    assert len(slugify("a" * 300)) == 120


def test_dedupe_preserving_order():
    assert dedupe_preserving_order(["a", "b"], ["b", "c", "a"], []) == ["a", "b", "c"]


def test_interest_text():
    profile = Profile(id="u1", role="Researcher", skills="qiskit", focus_areas=None, short_bio="  QEC  ")
    assert interest_text(profile) == "Role: Researcher\nSkills: qiskit\nFocus: \nBio: QEC"


def test_interest_text_blank_profile():
    assert interest_text(Profile(id="u1", role="  ")) == ""
