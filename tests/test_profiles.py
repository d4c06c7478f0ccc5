"""Tests for profiles: links, private contact and the directory."""

import pytest
from httpx import AsyncClient

from quantum5ocial.models import Profile
from quantum5ocial.schemas.profiles import ProfilePrivateOut, ProfilePrivateUpdate, ProfileUpdate, normalize_link
from quantum5ocial.services.profiles import (
    get_private_contact,
    list_directory,
    update_private_contact,
    update_profile,
)
from quantum5ocial.stores.postgres import contains_pattern, get_session


def test_normalize_link():
    assert normalize_link("  qubitlab.org/people ") == "https://qubitlab.org/people"
    assert normalize_link("http://example.edu") == "http://example.edu"
    assert normalize_link("HTTPS://Scholar.Google.com") == "HTTPS://Scholar.Google.com"
    assert normalize_link("   ") is None
    assert normalize_link(None) is None


def test_profile_update_normalises_links_only_when_sent():
    update = ProfileUpdate(github_url="github.com/ada", orcid="  0000-0002-1825-0097 ", linkedin_url="")
    assert update.model_dump(exclude_unset=True) == {
        "github_url": "https://github.com/ada",
        "orcid": "0000-0002-1825-0097",
        "linkedin_url": None,
    }


def test_contains_pattern_escapes_wildcards():
    assert contains_pattern("ada") == "%ada%"
    assert contains_pattern("100%_sure\\") == "%100\\%\\_sure\\\\%"


@pytest.mark.asyncio
async def test_update_profile_stores_links(db):
    out = await update_profile("ada", ProfileUpdate(full_name=" Ada ", lab_website="qlab.example.org"))

    assert out.full_name == "Ada"
    assert out.lab_website == "https://qlab.example.org"


@pytest.mark.asyncio
async def test_private_contact_is_per_owner(db):
    assert await get_private_contact("ada") == ProfilePrivateOut()

    saved = await update_private_contact(
        "ada", ProfilePrivateUpdate(phone=" +44 20 7946 0000 ", institutional_email="ada@uni.example")
    )
    assert (saved.phone, saved.institutional_email) == ("+44 20 7946 0000", "ada@uni.example")

    again = await get_private_contact("ada")
    assert again.phone == "+44 20 7946 0000"
    assert (await get_private_contact("bob")).phone is None

    cleared = await update_private_contact("ada", ProfilePrivateUpdate(phone="", institutional_email=None))
    assert (cleared.phone, cleared.institutional_email) == (None, None)


@pytest.mark.asyncio
async def test_private_contact_routes_never_leak_into_public_profile(
    db, client: AsyncClient, signed_in: str
):
    response = await client.put(
        "/v1/profiles/me/private", json={"phone": "555-0100", "institutional_email": "me@lab.example"}
    )
    assert response.status_code == 200
    assert response.json()["phone"] == "555-0100"

    response = await client.get("/v1/profiles/me/private")
    assert response.json()["institutional_email"] == "me@lab.example"

    public = (await client.get(f"/v1/profiles/{signed_in}")).json()
    assert "phone" not in public
    assert "institutional_email" not in public


@pytest.mark.asyncio
async def test_directory_search_treats_wildcards_literally(db):
    async with get_session() as session:
        session.add_all(
            [
                Profile(id="u1", full_name="Ada_Lovelace"),
                Profile(id="u2", full_name="Adam Smith"),
                Profile(id="u3", full_name="Grace Hopper"),
            ]
        )

    assert [p.full_name for p in await list_directory(search="_")] == ["Ada_Lovelace"]
    assert await list_directory(search="%") == []
    assert [p.full_name for p in await list_directory(search="ada")] == ["Ada_Lovelace", "Adam Smith"]
