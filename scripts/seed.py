#!/usr/bin/env python3
"""Seed a development database with demo community data.

Creates:
- A handful of member profiles (with Q5 badges computed from sample answers)
- Organizations (a company and a research group) with owners
- An accepted entanglement, a post, a question with an answer
- Jobs and products

The script is idempotent: rows are keyed by fixed ids/slugs and skipped when
present. Search documents are not created here; run scripts.reindex_search.

Usage:
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quantum5ocial.models import (
    Connection,
    Job,
    OrgMember,
    Organization,
    Post,
    Product,
    Profile,
    QnaAnswer,
    QnaQuestion,
)
from quantum5ocial.services.badge import BadgeAnswers, compute_q5_badge
from quantum5ocial.stores.postgres import close_db, get_session, init_db

load_dotenv()

# ============================================================
# Demo data
# ============================================================

PROFILES = [
    {
        "id": "00000000-0000-4000-8000-000000000001",
        "full_name": "Ada Qubit",
        "role": "Researcher",
        "current_title": "Postdoc, superconducting qubits",
        "affiliation": "Delft Quantum Lab",
        "skills": "cryogenics, microwave engineering, python",
        "focus_areas": "superconducting qubits, error correction",
        "highest_education": "PhD",
        "answers": BadgeAnswers(involvement=4, contribution=3, role_context="Researcher", education="PhD", impact=3),
    },
    {
        "id": "00000000-0000-4000-8000-000000000002",
        "full_name": "Bo Photon",
        "role": "Engineer",
        "current_title": "Photonics engineer",
        "affiliation": "LightWorks",
        "skills": "integrated photonics, FPGA",
        "focus_areas": "photonic quantum computing",
        "highest_education": "Master",
        "answers": BadgeAnswers(involvement=3, contribution=2, role_context="Industry", education="Master", impact=1),
    },
    {
        "id": "00000000-0000-4000-8000-000000000003",
        "full_name": "Cy Student",
        "role": "Student",
        "current_title": "MSc student",
        "affiliation": "ETH Zurich",
        "skills": "qiskit, linear algebra",
        "focus_areas": "quantum algorithms",
        "highest_education": "Bachelor",
        "answers": BadgeAnswers(involvement=1, contribution=0, role_context="Student", education="Bachelor", impact=0),
    },
]

ORGS = [
    {
        "slug": "lightworks",
        "name": "LightWorks",
        "kind": "company",
        "industry": "Photonics hardware",
        "focus_areas": "single-photon sources, detectors",
        "description": "Builds photonic components for quantum networks.",
        "owner": "00000000-0000-4000-8000-000000000002",
    },
    {
        "slug": "delft-quantum-lab",
        "name": "Delft Quantum Lab",
        "kind": "research_group",
        "industry": "Academic research",
        "focus_areas": "superconducting qubits",
        "description": "Research group working on transmon coherence and error correction.",
        "owner": "00000000-0000-4000-8000-000000000001",
    },
]


async def seed_profiles(session: AsyncSession) -> None:
    for p in PROFILES:
        if await session.get(Profile, p["id"]) is not None:
            print(f"  skip profile {p['full_name']}")
            continue
        badge = compute_q5_badge(p["answers"])
        fields = {k: v for k, v in p.items() if k != "answers"}
        session.add(
            Profile(
                **fields,
                q5_badge_level=badge.level,
                q5_badge_label=badge.label,
                q5_badge_review_status=badge.review_status,
            )
        )
        print(f"  + profile {p['full_name']} ({badge.label})")
    await session.flush()


async def seed_orgs(session: AsyncSession) -> dict[str, str]:
    org_ids: dict[str, str] = {}
    for o in ORGS:
        result = await session.execute(select(Organization).where(Organization.slug == o["slug"]))
        org = result.scalar_one_or_none()
        if org is None:
            fields = {k: v for k, v in o.items() if k != "owner"}
            org = Organization(**fields, created_by=o["owner"])
            session.add(org)
            await session.flush()
            session.add(OrgMember(org_id=org.id, user_id=o["owner"], role="owner"))
            print(f"  + org {o['slug']}")
        org_ids[o["slug"]] = org.id
    await session.flush()
    return org_ids


async def seed_community(session: AsyncSession, org_ids: dict[str, str]) -> None:
    ada, bo, cy = (p["id"] for p in PROFILES)

    existing = await session.execute(select(Connection).where(Connection.user_id == ada, Connection.target_user_id == bo))
    if existing.scalar_one_or_none() is None:
        session.add(Connection(user_id=ada, target_user_id=bo, status="accepted"))
        session.add(Connection(user_id=cy, target_user_id=ada, status="pending"))

    posts = await session.execute(select(Post.id).where(Post.user_id == bo).limit(1))
    if posts.scalar_one_or_none() is None:
        session.add(
            Post(
                user_id=bo,
                org_id=org_ids["lightworks"],
                body="Our new SNSPD module hits 95% detection efficiency at 1550 nm.",
            )
        )

    questions = await session.execute(select(QnaQuestion.id).where(QnaQuestion.user_id == cy).limit(1))
    if questions.scalar_one_or_none() is None:
        q = QnaQuestion(
            user_id=cy,
            title="How do I get started with transmon simulation?",
            body="Which open-source tools do labs actually use to model transmon spectra?",
            tags=["qubits", "software"],
        )
        session.add(q)
        await session.flush()
        session.add(QnaAnswer(question_id=q.id, user_id=ada, body="Start with scqubits, then QuTiP for dynamics."))

    jobs = await session.execute(select(Job.id).where(Job.owner_id == ada).limit(1))
    if jobs.scalar_one_or_none() is None:
        session.add(
            Job(
                owner_id=ada,
                org_id=org_ids["delft-quantum-lab"],
                title="PhD position: bosonic error correction",
                company_name="Delft Quantum Lab",
                location="Delft, NL",
                employment_type="phd",
                remote_type="onsite",
                additional_description="Design and test cat-qubit codes on 3D cavities.",
            )
        )

    products = await session.execute(select(Product.id).where(Product.owner_id == bo).limit(1))
    if products.scalar_one_or_none() is None:
        session.add(
            Product(
                owner_id=bo,
                org_id=org_ids["lightworks"],
                name="SNSPD-4",
                company_name="LightWorks",
                category="Detectors",
                short_description="Four-channel superconducting nanowire single-photon detector.",
                price_display="On request",
            )
        )


async def seed_database() -> None:
    """Seed database with demo data."""
    await init_db()
    try:
        async with get_session() as session:
            print("Seeding database...")
            print("\nProfiles:")
            await seed_profiles(session)
            print("\nOrganizations:")
            org_ids = await seed_orgs(session)
            print("\nCommunity content...")
            await seed_community(session, org_ids)
        print("\nDatabase seeded successfully!")
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(seed_database())
