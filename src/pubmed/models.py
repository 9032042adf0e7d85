"""
PubMed Data Models for MedCite

Typed views over E-utilities payloads and the enriched documents that flow
through the ranking funnel. Every enriched document carries a complete
PubMedData block; EnrichmentStage says how much of it came from PubMed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EnrichmentStage(str, Enum):
    """How much external metadata a document has received."""

    NONE = "none"
    CITATIONS_ONLY = "citations_only"
    FULL = "full"


@dataclass
class DocSummary:
    """Article metadata from ESummary (JSON, version 2.0)."""

    uid: str
    title: str = ""
    authors: list[str] = field(default_factory=list)
    source: str = ""
    fulljournalname: str = ""
    pubdate: str = ""
    sortpubdate: str = ""
    pubtype: list[str] = field(default_factory=list)
    article_ids: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_json(cls, uid: str, data: dict[str, Any]) -> "DocSummary":
        authors = [
            a.get("name", "")
            for a in data.get("authors") or []
            if isinstance(a, dict) and a.get("name")
        ]
        article_ids = {}
        for entry in data.get("articleids") or []:
            if isinstance(entry, dict) and entry.get("idtype") and entry.get("value"):
                article_ids.setdefault(entry["idtype"], entry["value"])
        return cls(
            uid=str(data.get("uid") or uid),
            title=data.get("title") or "",
            authors=authors,
            source=data.get("source") or "",
            fulljournalname=data.get("fulljournalname") or "",
            pubdate=data.get("pubdate") or "",
            sortpubdate=data.get("sortpubdate") or "",
            pubtype=list(data.get("pubtype") or []),
            article_ids=article_ids,
        )

    @property
    def doi(self) -> str | None:
        return self.article_ids.get("doi")

    @property
    def pmc_id(self) -> str | None:
        return self.article_ids.get("pmc")


@dataclass
class PubMedData:
    """Bibliographic block attached to every enriched document."""

    title: str = "Unknown"
    authors: list[str] = field(default_factory=list)
    journal: str = "Unknown"
    publication_date: str = "Unknown"
    abstract: str | None = None
    article_types: list[str] = field(default_factory=list)
    doi: str | None = None
    pmc_id: str | None = None
    citation_count: int = 0


@dataclass
class EnrichedDocument:
    """A retrieved candidate plus whatever PubMed metadata was fetched."""

    content: str
    metadata: dict[str, Any]
    pmid: str | None = None
    vector_similarity: float = 1.0
    pubmed: PubMedData = field(default_factory=PubMedData)
    stage: EnrichmentStage = EnrichmentStage.NONE
    quality_score: float = 0.0
    citation_score: float = 0.0

    @property
    def title(self) -> str:
        return self.pubmed.title or self.metadata.get("title") or "Untitled"


@dataclass
class EnrichmentResult:
    """Outcome of one enrichment pass."""

    success: bool = True
    enriched_count: int = 0
    failed_count: int = 0
    enriched_docs: list[EnrichedDocument] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
