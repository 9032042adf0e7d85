"""
Pipeline Configuration for MedCite

Environment-driven defaults shared by the retrieval funnel, the PubMed
client, and the LLM-backed stages. Centralised so the vector search width
and the enrichment funnel stay in sync.
"""

import os

from pydantic import BaseModel, field_validator, model_validator

# Number of candidates retrieved from the vector index for re-ranking
RERANK_CANDIDATES = int(os.environ.get("RERANK_CANDIDATES", "20"))

# Number of top documents passed to the response generator
TOP_K = int(os.environ.get("TOP_K", "5"))

# Weights for combining vector similarity and citation count
RANKING_VECTOR_WEIGHT = float(os.environ.get("RANKING_VECTOR_WEIGHT", "0.7"))
RANKING_CITATION_WEIGHT = float(os.environ.get("RANKING_CITATION_WEIGHT", "0.3"))

# PubMed E-utilities request policy
PUBMED_RETRY_ATTEMPTS = int(os.environ.get("PUBMED_RETRY_ATTEMPTS", "1"))
PUBMED_TIMEOUT_SECONDS = float(os.environ.get("PUBMED_TIMEOUT_SECONDS", "10"))
PUBMED_RETRY_BASE_DELAY = float(os.environ.get("PUBMED_RETRY_BASE_DELAY", "1.0"))
NCBI_API_KEY = os.environ.get("NCBI_API_KEY") or None
NCBI_EMAIL = os.environ.get("NCBI_EMAIL") or None

# LLM-backed stages
REWRITE_TIMEOUT_SECONDS = float(os.environ.get("REWRITE_TIMEOUT_SECONDS", "10"))
SYNTHESIS_MAX_RETRIES = int(os.environ.get("SYNTHESIS_MAX_RETRIES", "1"))


class PipelineConfig(BaseModel):
    """Validated knobs for one pipeline instance."""

    rerank_candidates: int = RERANK_CANDIDATES
    top_k: int = TOP_K
    vector_weight: float = RANKING_VECTOR_WEIGHT
    citation_weight: float = RANKING_CITATION_WEIGHT
    retry_attempts: int = PUBMED_RETRY_ATTEMPTS
    timeout_seconds: float = PUBMED_TIMEOUT_SECONDS

    @field_validator("rerank_candidates", "top_k")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @field_validator("vector_weight", "citation_weight")
    @classmethod
    def validate_weight(cls, v: float) -> float:
        if v < 0.0:
            raise ValueError("ranking weights must be non-negative")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        if v < 0:
            raise ValueError("retry_attempts must be non-negative")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v

    @model_validator(mode="after")
    def validate_funnel_shape(self) -> "PipelineConfig":
        if self.top_k > self.rerank_candidates:
            raise ValueError("top_k cannot exceed rerank_candidates")
        return self

    @property
    def ranking_weights(self):
        from src.rag.ranking import RankingWeights

        return RankingWeights(
            vector_similarity=self.vector_weight,
            citation_count=self.citation_weight,
        )
