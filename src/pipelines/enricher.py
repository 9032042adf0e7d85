"""
Enrichment Funnel for MedCite

Three phases over the retrieved candidates:
1. Fetch citation counts for the first RERANK_CANDIDATES (one ELink call)
2. Re-rank by vector similarity + citations, keep the top K
3. Fetch summaries and abstracts for the top K only

Expensive metadata calls are only made for documents that can reach the
answer. Every phase degrades instead of failing: the funnel always returns
min(TOP_K, len(candidates)) documents.
"""

import logging
from dataclasses import dataclass, field

from src.config import PipelineConfig
from src.observability.metrics import record_funnel_failure
from src.pubmed.client import PubMedClient
from src.pubmed.enrichment import (
    create_enriched_document,
    enrich_with_citations_only,
    enrich_with_full_metadata,
)
from src.pubmed.models import EnrichedDocument
from src.rag.ranking import get_top_documents
from src.rag.vector_search import CandidateDocument

logger = logging.getLogger(__name__)


@dataclass
class FunnelResult:
    documents: list[EnrichedDocument] = field(default_factory=list)
    candidates_considered: int = 0
    citations_enriched: int = 0
    fully_enriched: int = 0
    errors: list[str] = field(default_factory=list)


class EnrichmentFunnel:
    """Citation-aware re-ranking between vector search and synthesis."""

    def __init__(self, client: PubMedClient, config: PipelineConfig | None = None):
        self.client = client
        self.config = config or PipelineConfig()

    async def enrich(self, candidates: list[CandidateDocument]) -> FunnelResult:
        result = FunnelResult()
        if not candidates:
            logger.info("No documents to enrich")
            return result

        # Retrieval order is already similarity-descending
        intake = candidates[: self.config.rerank_candidates]
        result.candidates_considered = len(intake)

        # --- Phase 1: citation counts ---
        logger.info("Phase 1: Fetching citation counts for %d candidates", len(intake))
        try:
            citation_result = await enrich_with_citations_only(intake, self.client)
            citation_docs = citation_result.enriched_docs
            result.citations_enriched = citation_result.enriched_count
            if not citation_result.success:
                record_funnel_failure("citations")
                result.errors.extend(citation_result.errors)
        except Exception as e:
            logger.warning("Phase 1 failed, continuing without citations: %s", e)
            record_funnel_failure("citations")
            result.errors.append(str(e))
            citation_docs = [create_enriched_document(c) for c in intake]

        # --- Phase 2: re-rank and narrow ---
        logger.info("Phase 2: Re-ranking %d documents", len(citation_docs))
        top_docs = get_top_documents(
            citation_docs, self.config.top_k, self.config.ranking_weights
        )
        logger.info("Top %d after re-ranking:", len(top_docs))
        for idx, doc in enumerate(top_docs, 1):
            logger.info(
                "  %d. '%.50s...' (score: %.3f, citations: %d)",
                idx,
                doc.pubmed.title,
                doc.quality_score,
                doc.pubmed.citation_count,
            )

        # --- Phase 3: full metadata for the top K ---
        logger.info("Phase 3: Fetching full metadata for top %d", len(top_docs))
        try:
            full_result = await enrich_with_full_metadata(top_docs, self.client)
        except Exception as e:
            logger.warning("Phase 3 failed, using citation-only documents: %s", e)
            record_funnel_failure("full_metadata")
            result.errors.append(str(e))
            result.documents = top_docs
            return result

        if not full_result.success:
            logger.warning(
                "Phase 3 degraded, using citation-only documents: %s",
                "; ".join(full_result.errors),
            )
            record_funnel_failure("full_metadata")
            result.errors.extend(full_result.errors)
            result.documents = top_docs
            return result

        result.documents = full_result.enriched_docs
        result.fully_enriched = full_result.enriched_count
        logger.info(
            "Enrichment complete: %d/%d fully enriched",
            result.fully_enriched,
            len(result.documents),
        )
        return result
