"""
Pipeline assembly for MedCite.

Builds the production MedicalQAPipeline from environment configuration:
Ollama-backed LLM capabilities, pgvector retrieval and the PubMed client.
All collaborators are stateless and safe to share across requests.
"""

import logging

from src.config import PipelineConfig
from src.pipelines.enricher import EnrichmentFunnel
from src.pipelines.medical import MedicalQAPipeline
from src.pipelines.query_rewriter import QueryRewriter
from src.pipelines.response import ResponseGenerator
from src.pipelines.scope_classifier import ScopeClassifier
from src.pubmed.client import PubMedClient

logger = logging.getLogger(__name__)


def build_pipeline(
    config: PipelineConfig | None = None,
    vector_search=None,
) -> MedicalQAPipeline:
    config = config or PipelineConfig()

    from src.llm.capabilities import (
        OllamaClassifier,
        OllamaRewriter,
        OllamaSynthesizer,
    )

    if vector_search is None:
        from src.db.postgres import get_session_factory
        from src.rag.embedding import EmbeddingGenerator
        from src.rag.vector_search import PgVectorSearch

        vector_search = PgVectorSearch(get_session_factory(), EmbeddingGenerator())

    client = PubMedClient(
        retry_attempts=config.retry_attempts, timeout=config.timeout_seconds
    )
    logger.info(
        "Pipeline configured: %d candidates -> top %d (weights %.2f/%.2f)",
        config.rerank_candidates,
        config.top_k,
        config.vector_weight,
        config.citation_weight,
    )

    return MedicalQAPipeline(
        scope_classifier=ScopeClassifier(OllamaClassifier()),
        query_rewriter=QueryRewriter(OllamaRewriter()),
        vector_search=vector_search,
        funnel=EnrichmentFunnel(client, config),
        response_generator=ResponseGenerator(OllamaSynthesizer()),
        config=config,
    )
