"""
MedCite RAG Module

Retrieval and ranking components:
- CandidateDocument / VectorSearch: similarity search over the literature index
- Ranking: citation-aware quality score and batch re-rank
"""

from src.rag.ranking import (
    DEFAULT_RANKING_WEIGHTS,
    RankingWeights,
    calculate_quality_score,
    get_top_documents,
    rerank_documents,
)
from src.rag.vector_search import CandidateDocument, PgVectorSearch, VectorSearch

__all__ = [
    # Ranking
    "RankingWeights",
    "DEFAULT_RANKING_WEIGHTS",
    "calculate_quality_score",
    "rerank_documents",
    "get_top_documents",
    # Retrieval
    "CandidateDocument",
    "VectorSearch",
    "PgVectorSearch",
]
