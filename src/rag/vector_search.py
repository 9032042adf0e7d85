"""
Vector Search for MedCite

Candidate retrieval from the literature index. The pipeline depends only on
the VectorSearch protocol; PgVectorSearch is the production backend using
pgvector cosine distance over pre-embedded literature chunks.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

from sqlalchemy import text

logger = logging.getLogger(__name__)

# Identifier values the index uses for "no PMID"
MISSING_IDENTIFIERS = {"", "0"}


@dataclass
class CandidateDocument:
    """A literature chunk returned by similarity search, before enrichment."""

    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    identifier: str | None = None
    vector_similarity: float = 1.0

    def __post_init__(self) -> None:
        if self.identifier is None:
            raw = self.metadata.get("pmid")
            self.identifier = None if raw is None else str(raw)
        self.identifier = self.identifier.strip() if self.identifier else None
        if self.identifier in MISSING_IDENTIFIERS:
            self.identifier = None

    @property
    def title(self) -> str | None:
        return metadata_text(self.metadata, "title")

    @property
    def author(self) -> str | None:
        return metadata_text(self.metadata, "author")


def metadata_text(metadata: dict[str, Any], key: str) -> str | None:
    """Non-blank string value of an index field, else None."""
    value = metadata.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


class VectorSearch(Protocol):
    """Similarity search over the literature index."""

    async def search(self, query: str, k: int) -> list[CandidateDocument]:
        """Return at most k candidates, similarity-descending."""
        ...


class PgVectorSearch:
    """pgvector-backed literature search."""

    def __init__(self, session_factory, embedding_generator, table: str | None = None):
        from src.db.models import LiteratureChunk

        self._session_factory = session_factory
        self._embedding_generator = embedding_generator
        self._table = table or LiteratureChunk.__tablename__

    async def search(self, query: str, k: int) -> list[CandidateDocument]:
        """Embed the query and return the k nearest chunks by cosine similarity."""
        try:
            query_embedding = await self._embedding_generator.embed_query(query)
            # Format vector as pgvector literal: '[1.0,2.0,3.0]'::vector
            embedding_str = "[" + ",".join(str(v) for v in query_embedding) + "]"
            sql = text(
                "SELECT pmid, title, author, article_citation, last_updated, "
                "chunk_text, "
                "1 - (embedding <=> CAST(:query_vector AS vector)) AS similarity "
                f"FROM {self._table} "
                "WHERE embedding IS NOT NULL "
                "ORDER BY embedding <=> CAST(:query_vector AS vector) "
                "LIMIT :top_k"
            )
            async with self._session_factory() as session:
                result = await session.execute(
                    sql, {"query_vector": embedding_str, "top_k": k}
                )
                rows = result.fetchall()
        except Exception as e:
            logger.error(
                "Vector search failed: %s (top_k=%d)", str(e), k, exc_info=True
            )
            return []

        return [
            CandidateDocument(
                content=row.chunk_text,
                metadata={
                    "pmid": row.pmid,
                    "title": row.title,
                    "author": row.author,
                    "article_citation": row.article_citation,
                    "last_updated": row.last_updated,
                },
                vector_similarity=min(max(float(row.similarity), 0.0), 1.0),
            )
            for row in rows
        ]
