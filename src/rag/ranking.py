"""
Citation-Aware Ranking for MedCite

Combines vector similarity with log-normalized citation counts into a
single quality score, then re-ranks a batch of enriched documents.

Log normalization keeps a handful of highly-cited papers from drowning out
documents that are more relevant to the actual query.
"""

import logging
import math
from dataclasses import dataclass, replace

from src.pubmed.models import EnrichedDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingWeights:
    """Blend weights for the quality score."""

    vector_similarity: float = 0.7
    citation_count: float = 0.3


DEFAULT_RANKING_WEIGHTS = RankingWeights()


def normalize_citations(citation_count: int, max_citations: int) -> float:
    """Log-normalize a citation count against the batch maximum."""
    if max_citations <= 0:
        return 0.0
    return math.log(citation_count + 1) / math.log(max_citations + 1)


def calculate_quality_score(
    vector_similarity: float,
    citation_count: int,
    max_citations: int,
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
) -> float:
    """Weighted blend of vector similarity and normalized citation count."""
    normalized = normalize_citations(citation_count, max_citations)
    return (
        vector_similarity * weights.vector_similarity
        + normalized * weights.citation_count
    )


def rerank_documents(
    documents: list[EnrichedDocument],
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
) -> list[EnrichedDocument]:
    """Score every document against the batch and sort descending.

    The sort is stable, so documents with equal scores keep their
    retrieval order.
    """
    if not documents:
        return []

    max_citations = max(doc.pubmed.citation_count for doc in documents)

    ranked = [
        replace(
            doc,
            quality_score=calculate_quality_score(
                doc.vector_similarity,
                doc.pubmed.citation_count,
                max_citations,
                weights,
            ),
            citation_score=normalize_citations(
                doc.pubmed.citation_count, max_citations
            ),
        )
        for doc in documents
    ]
    ranked.sort(key=lambda d: d.quality_score, reverse=True)
    return ranked


def get_top_documents(
    documents: list[EnrichedDocument],
    n: int,
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
) -> list[EnrichedDocument]:
    """Re-rank and keep the top n documents."""
    return rerank_documents(documents, weights)[:n]
