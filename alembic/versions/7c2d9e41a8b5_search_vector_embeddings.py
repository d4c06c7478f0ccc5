"""search_vector_embeddings

Revision ID: 7c2d9e41a8b5
Revises: 1f4e2a7c9b30
Create Date: 2026-10-19
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c2d9e41a8b5"
down_revision: Union[str, Sequence[str], None] = "1f4e2a7c9b30"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    # JSON embeddings cannot be cast; the index is rebuilt by scripts/reindex_search.py
    op.execute("DELETE FROM search_documents")
    op.drop_column("search_documents", "embedding_json")
    op.execute("ALTER TABLE search_documents ADD COLUMN embedding vector(1536) NOT NULL")

    op.execute(
        """
        CREATE INDEX IF NOT EXISTS ix_search_documents_embedding_hnsw
        ON search_documents
        USING hnsw (embedding vector_cosine_ops)
        WITH (m = 16, ef_construction = 64)
        """
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_search_documents_embedding_hnsw")
    op.execute("DELETE FROM search_documents")
    op.drop_column("search_documents", "embedding")
    op.add_column("search_documents", sa.Column("embedding_json", sa.Text(), nullable=False))
