"""Search document model.

One row per indexed entity (job, product, organization, profile, question, post).
`link` is the entity id, or the slug for organizations. The embedding is a
pgvector column with an HNSW cosine index (see the alembic revision).
"""

from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from quantum5ocial.stores.postgres import Base

# text-embedding-3-small output size; embed_text requests exactly this many
EMBEDDING_DIMENSIONS = 1536


class SearchDocument(Base):
    """Embedded text used by the assistant and recommendations."""

    __tablename__ = "search_documents"
    __table_args__ = (UniqueConstraint("doc_type", "link", name="uq_search_documents_type_link"),)

    id: Mapped[int] = mapped_column(primary_key=True)

    doc_type: Mapped[str] = mapped_column(String(30), index=True)
    link: Mapped[str] = mapped_column(String(200), index=True)
    title: Mapped[str | None] = mapped_column(String(300))
    content: Mapped[str] = mapped_column(Text)
    embedding: Mapped[list[float]] = mapped_column(Vector(EMBEDDING_DIMENSIONS))

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<SearchDocument {self.doc_type}:{self.link}>"
