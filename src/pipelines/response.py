"""
Response Generation for MedCite

Synthesizes a cited answer from the top enriched documents. The model call
is retried a bounded number of times; if it still fails the caller gets a
fixed fallback that lists the sources it would have cited.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from src.config import SYNTHESIS_MAX_RETRIES
from src.llm.capabilities import Synthesizer
from src.llm.formatters import (
    MEDICAL_DISCLAIMER,
    FormattedCitation,
    build_document_context,
    calculate_response_metadata,
    clean_response_text,
    format_citations,
    format_medical_response,
    format_sources_section,
)
from src.pipelines.prompts import (
    FALLBACK_RESPONSE,
    MEDICAL_QA_SYSTEM_PROMPT,
    build_user_prompt,
)
from src.pubmed.models import EnrichedDocument

logger = logging.getLogger(__name__)

MAX_DOCUMENTS = 5


@dataclass
class MedicalResponse:
    answer: str
    sources: list[FormattedCitation] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def format(self) -> str:
        """Answer text followed by the sources section and disclaimer."""
        return format_medical_response(self.answer, self.sources)


@dataclass
class ResponseGenerationResult:
    success: bool
    response: MedicalResponse | None = None
    error: str | None = None
    retry_count: int = 0


def generate_fallback_response(
    documents: list[EnrichedDocument], max_documents: int = MAX_DOCUMENTS
) -> str:
    sources = format_sources_section(format_citations(documents[:max_documents]))
    return FALLBACK_RESPONSE + sources + MEDICAL_DISCLAIMER


class ResponseGenerator:
    def __init__(
        self,
        synthesizer: Synthesizer,
        max_documents: int = MAX_DOCUMENTS,
        max_retries: int = SYNTHESIS_MAX_RETRIES,
        retry_delay: float = 1.0,
    ):
        self.synthesizer = synthesizer
        self.max_documents = max_documents
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def generate(
        self, user_query: str, documents: list[EnrichedDocument]
    ) -> ResponseGenerationResult:
        documents_to_use = documents[: self.max_documents]
        if not documents_to_use:
            return ResponseGenerationResult(
                success=False, error="No documents available to generate response"
            )

        user_prompt = build_user_prompt(
            user_query, build_document_context(documents_to_use)
        )
        logger.info("Generating response with %d documents", len(documents_to_use))

        last_error = ""
        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                logger.info("Retrying synthesis (%d/%d)...", attempt, self.max_retries)
                await asyncio.sleep(self.retry_delay * attempt)
            try:
                raw = await self.synthesizer.synthesize(
                    MEDICAL_QA_SYSTEM_PROMPT, user_prompt
                )
            except Exception as e:
                last_error = str(e) or type(e).__name__
                logger.error("Synthesis error: %s", last_error)
                continue

            metadata = calculate_response_metadata(documents_to_use)
            logger.info(
                "Synthesis succeeded (%d docs, avg citations: %d)",
                metadata["documents_used"],
                metadata["average_citation_count"],
            )
            return ResponseGenerationResult(
                success=True,
                response=MedicalResponse(
                    answer=clean_response_text(raw),
                    sources=format_citations(documents_to_use),
                    metadata=metadata,
                ),
                retry_count=attempt,
            )

        return ResponseGenerationResult(
            success=False, error=last_error, retry_count=self.max_retries
        )
