"""
Medical QA Pipeline for MedCite

A small state machine over one request-scoped state object:

    scope_classify -> reject                                   (terminal)
                   -> query_rewrite -> retrieve -> no_results  (terminal)
                                                -> enrich -> synthesize

Each stage returns a partial update that is merged into the state, and the
route out of a stage is decided only from fields written earlier on its
branch. Every stage runs at most once per request.
"""

import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from src.config import PipelineConfig
from src.llm.formatters import format_citations
from src.observability.metrics import (
    record_classifier_failure,
    record_query,
    record_rewrite_fallback,
    record_synthesis_fallback,
)
from src.pipelines.enricher import EnrichmentFunnel
from src.pipelines.prompts import NO_RESULTS_RESPONSE, OUT_OF_SCOPE_MESSAGE
from src.pipelines.query_rewriter import QueryRewriter
from src.pipelines.response import ResponseGenerator, generate_fallback_response
from src.pipelines.scope_classifier import ScopeClassificationError, ScopeClassifier
from src.pubmed.models import EnrichedDocument
from src.rag.vector_search import CandidateDocument, VectorSearch

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    SCOPE_CLASSIFY = "scope_classify"
    REJECT = "reject"
    QUERY_REWRITE = "query_rewrite"
    RETRIEVE = "retrieve"
    NO_RESULTS = "no_results"
    ENRICH = "enrich"
    SYNTHESIZE = "synthesize"
    DONE = "done"


class Outcome(str, Enum):
    ANSWERED = "answered"
    OUT_OF_SCOPE = "out_of_scope"
    NO_RESULTS = "no_results"


@dataclass(frozen=True)
class PipelineState:
    """Request-scoped context threaded through the stages."""

    query: str
    is_medical: bool | None = None
    optimized_query: str | None = None
    rewrite_fallback_used: bool = False
    candidates: tuple[CandidateDocument, ...] = ()
    enriched_docs: tuple[EnrichedDocument, ...] = ()
    answer: str | None = None
    outcome: Outcome | None = None
    sources: tuple[dict[str, Any], ...] = ()


@dataclass
class PipelineResult:
    """Final answer plus a trace of the stages that produced it."""

    answer: str
    outcome: str
    query_id: str
    processing_time_ms: float
    optimized_query: str | None = None
    rewrite_fallback_used: bool = False
    sources: list[dict[str, Any]] = field(default_factory=list)
    steps: list[dict[str, Any]] = field(default_factory=list)


StageHandler = Callable[[PipelineState], Awaitable[tuple[dict[str, Any], str]]]


class MedicalQAPipeline:
    """Scope check, query rewrite, retrieval, enrichment funnel, synthesis."""

    def __init__(
        self,
        scope_classifier: ScopeClassifier,
        query_rewriter: QueryRewriter,
        vector_search: VectorSearch,
        funnel: EnrichmentFunnel,
        response_generator: ResponseGenerator,
        config: PipelineConfig | None = None,
    ):
        self.scope_classifier = scope_classifier
        self.query_rewriter = query_rewriter
        self.vector_search = vector_search
        self.funnel = funnel
        self.response_generator = response_generator
        self.config = config or PipelineConfig()

        self._handlers: dict[Stage, StageHandler] = {
            Stage.SCOPE_CLASSIFY: self._scope_classify,
            Stage.REJECT: self._reject,
            Stage.QUERY_REWRITE: self._query_rewrite,
            Stage.RETRIEVE: self._retrieve,
            Stage.NO_RESULTS: self._no_results,
            Stage.ENRICH: self._enrich,
            Stage.SYNTHESIZE: self._synthesize,
        }

    async def run(self, question: str) -> PipelineResult:
        """Run one question to a terminal state.

        Raises ScopeClassificationError when the LLM classifier fails on an
        ambiguous question; every other failure degrades inside its stage.
        """
        start_time = time.time()
        steps: list[dict[str, Any]] = []
        state = PipelineState(query=question)
        visited: set[Stage] = set()

        logger.info("Processing query: '%s'", question)

        stage = Stage.SCOPE_CLASSIFY
        while stage is not Stage.DONE:
            if stage in visited:
                raise RuntimeError(f"Pipeline re-entered stage {stage.value}")
            visited.add(stage)

            step_start = time.time()
            updates, detail = await self._handlers[stage](state)
            state = replace(state, **updates)
            steps.append(
                {
                    "name": stage.value,
                    "duration_ms": round((time.time() - step_start) * 1000, 1),
                    "detail": detail,
                }
            )
            stage = self.next_stage(stage, state)

        elapsed = round((time.time() - start_time) * 1000, 1)
        record_query(elapsed, state.outcome.value)
        logger.info("Query finished: %s in %.0fms", state.outcome.value, elapsed)

        return PipelineResult(
            answer=state.answer or "",
            outcome=state.outcome.value,
            query_id=str(uuid.uuid4())[:8],
            processing_time_ms=elapsed,
            optimized_query=state.optimized_query,
            rewrite_fallback_used=state.rewrite_fallback_used,
            sources=list(state.sources),
            steps=steps,
        )

    @staticmethod
    def next_stage(stage: Stage, state: PipelineState) -> Stage:
        """Route out of a completed stage."""
        if stage is Stage.SCOPE_CLASSIFY:
            return Stage.QUERY_REWRITE if state.is_medical else Stage.REJECT
        if stage is Stage.QUERY_REWRITE:
            return Stage.RETRIEVE
        if stage is Stage.RETRIEVE:
            return Stage.ENRICH if state.candidates else Stage.NO_RESULTS
        if stage is Stage.ENRICH:
            return Stage.SYNTHESIZE
        return Stage.DONE

    # ============================================
    # Stages
    # ============================================

    async def _scope_classify(self, state: PipelineState) -> tuple[dict, str]:
        try:
            decision = await self.scope_classifier.classify(state.query)
        except ScopeClassificationError:
            record_classifier_failure()
            raise

        if decision.matched_keyword:
            detail = f"{decision.method}: '{decision.matched_keyword}'"
        else:
            detail = decision.method
        return {"is_medical": decision.is_medical}, detail

    async def _reject(self, state: PipelineState) -> tuple[dict, str]:
        logger.info("Returning out-of-scope message")
        return {
            "answer": OUT_OF_SCOPE_MESSAGE,
            "outcome": Outcome.OUT_OF_SCOPE,
        }, "Non-medical question"

    async def _query_rewrite(self, state: PipelineState) -> tuple[dict, str]:
        result = await self.query_rewriter.rewrite(state.query)
        if result.fallback_used:
            record_rewrite_fallback()
            detail = f"Fallback to original query ({result.error})"
        else:
            detail = result.optimized_query
        return {
            "optimized_query": result.optimized_query,
            "rewrite_fallback_used": result.fallback_used,
        }, detail

    async def _retrieve(self, state: PipelineState) -> tuple[dict, str]:
        search_query = state.optimized_query or state.query
        candidates = await self.vector_search.search(
            search_query, self.config.rerank_candidates
        )
        logger.info("Retrieved %d candidates", len(candidates))
        return {"candidates": tuple(candidates)}, f"{len(candidates)} candidates"

    async def _no_results(self, state: PipelineState) -> tuple[dict, str]:
        logger.info("Returning no-results message")
        return {
            "answer": NO_RESULTS_RESPONSE,
            "outcome": Outcome.NO_RESULTS,
        }, "No matching literature"

    async def _enrich(self, state: PipelineState) -> tuple[dict, str]:
        result = await self.funnel.enrich(list(state.candidates))
        detail = (
            f"{len(result.documents)}/{result.candidates_considered} kept, "
            f"{result.citations_enriched} with citations, "
            f"{result.fully_enriched} fully enriched"
        )
        return {"enriched_docs": tuple(result.documents)}, detail

    async def _synthesize(self, state: PipelineState) -> tuple[dict, str]:
        documents = list(state.enriched_docs)
        result = await self.response_generator.generate(state.query, documents)

        if result.success and result.response is not None:
            return {
                "answer": result.response.format(),
                "outcome": Outcome.ANSWERED,
                "sources": tuple(s.to_dict() for s in result.response.sources),
            }, f"Answered from {len(result.response.sources)} documents"

        logger.warning("Synthesis failed, returning fallback response: %s", result.error)
        record_synthesis_fallback()
        max_documents = self.response_generator.max_documents
        sources = format_citations(documents[:max_documents])
        return {
            "answer": generate_fallback_response(documents, max_documents),
            "outcome": Outcome.ANSWERED,
            "sources": tuple(s.to_dict() for s in sources),
        }, "Fallback response"
