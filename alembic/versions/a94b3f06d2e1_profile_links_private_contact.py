"""profile_links_private_contact

Revision ID: a94b3f06d2e1
Revises: 7c2d9e41a8b5
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a94b3f06d2e1"
down_revision: Union[str, Sequence[str], None] = "7c2d9e41a8b5"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_PROFILE_TEXT_COLUMNS = (
    "key_experience",
    "lab_website",
    "google_scholar",
    "linkedin_url",
    "github_url",
    "personal_website",
)


def upgrade() -> None:
    for name in _PROFILE_TEXT_COLUMNS:
        op.add_column("profiles", sa.Column(name, sa.Text(), nullable=True))
    op.add_column("profiles", sa.Column("orcid", sa.String(length=100), nullable=True))

    op.create_table(
        "profile_private",
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True),
        sa.Column("institutional_email", sa.String(length=320), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("profile_private")
    op.drop_column("profiles", "orcid")
    for name in reversed(_PROFILE_TEXT_COLUMNS):
        op.drop_column("profiles", name)
