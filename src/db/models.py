"""
MedCite SQLAlchemy Models

Read-side definition of the literature index queried by PgVectorSearch.
The index is populated offline; the query pipeline never writes to it.
"""

import os

from pgvector.sqlalchemy import Vector
from sqlalchemy import BigInteger, Index, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Embedding vector dimension (nomic-embed-text-v1.5 produces 768-dim vectors)
EMBEDDING_DIMENSION = int(os.environ.get("EMBEDDING_DIMENSION", "768"))

LITERATURE_TABLE = os.environ.get("LITERATURE_TABLE", "literature_chunks")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""


class LiteratureChunk(Base):
    """One embedded excerpt of a PubMed Central article."""

    __tablename__ = LITERATURE_TABLE

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    pmid: Mapped[str | None] = mapped_column(String(32), nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    author: Mapped[str | None] = mapped_column(Text, nullable=True)
    article_citation: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_updated: Mapped[str | None] = mapped_column(String(64), nullable=True)
    chunk_text: Mapped[str] = mapped_column(Text, nullable=False)
    embedding: Mapped[list[float] | None] = mapped_column(
        Vector(EMBEDDING_DIMENSION), nullable=True
    )

    __table_args__ = (Index(f"idx_{LITERATURE_TABLE}_pmid", "pmid"),)

    def __repr__(self) -> str:
        return f"<LiteratureChunk(id={self.id}, pmid={self.pmid})>"
