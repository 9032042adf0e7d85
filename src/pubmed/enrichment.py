"""
PubMed Enrichment for MedCite

Merges PubMed metadata into retrieved candidates. Two passes:
- Citations only: cheap, one ELink call for the whole candidate set
- Full metadata: ESummary + EFetch, only for the documents that survive re-ranking

Documents are never dropped; a document PubMed knows nothing about keeps a
metadata block built from its own index fields.
"""

import asyncio
import logging
from dataclasses import replace

from src.pubmed.client import PubMedClient
from src.pubmed.models import (
    DocSummary,
    EnrichedDocument,
    EnrichmentResult,
    EnrichmentStage,
    PubMedData,
)
from src.rag.vector_search import CandidateDocument, metadata_text

logger = logging.getLogger(__name__)


def fallback_pubmed_data(metadata: dict) -> PubMedData:
    """Metadata block built only from the index's own fields."""
    author = metadata_text(metadata, "author")
    return PubMedData(
        title=metadata_text(metadata, "title") or "Unknown",
        authors=[author] if author else [],
        journal=metadata_text(metadata, "article_citation") or "Unknown",
        publication_date=metadata_text(metadata, "last_updated") or "Unknown",
    )


def create_enriched_document(
    candidate: CandidateDocument, pmid: str | None = None
) -> EnrichedDocument:
    """Wrap a candidate as a minimally-enriched document (all defaults)."""
    return EnrichedDocument(
        content=candidate.content,
        metadata=candidate.metadata,
        pmid=pmid or candidate.identifier,
        vector_similarity=candidate.vector_similarity,
        pubmed=fallback_pubmed_data(candidate.metadata),
        stage=EnrichmentStage.NONE,
    )


def pubmed_data_from_summary(
    summary: DocSummary,
    metadata: dict,
    abstract: str | None,
    citation_count: int,
) -> PubMedData:
    return PubMedData(
        title=summary.title or metadata_text(metadata, "title") or "Unknown",
        authors=summary.authors,
        journal=summary.fulljournalname or summary.source or "Unknown",
        publication_date=summary.pubdate or summary.sortpubdate or "Unknown",
        abstract=abstract,
        article_types=summary.pubtype,
        doi=summary.doi,
        pmc_id=summary.pmc_id,
        citation_count=citation_count,
    )


async def resolve_pmids(
    candidates: list[CandidateDocument], client: PubMedClient
) -> list[str | None]:
    """PMID per candidate, searching by title/author where the index has none.

    Searches run one at a time in candidate order to stay under the
    E-utilities rate limit. A failed search leaves only that candidate
    without a PMID.
    """
    pmids: list[str | None] = []
    for i, candidate in enumerate(candidates):
        pmid = candidate.identifier
        if pmid is None and candidate.title:
            try:
                pmid = await client.resolve_identifier(
                    candidate.title, candidate.author
                )
            except Exception as e:
                logger.warning("PMID search failed for doc %d: %s", i, e)
                pmid = None
            if pmid:
                logger.info("Resolved PMID %s via search for doc %d", pmid, i)
            else:
                logger.debug("No PMID found for doc %d", i)
        pmids.append(pmid)
    return pmids


async def enrich_with_citations_only(
    candidates: list[CandidateDocument], client: PubMedClient
) -> EnrichmentResult:
    """Resolve PMIDs and attach citation counts.

    Candidates without a PMID get a citation count of 0 and are kept. If the
    citation fetch fails, every candidate is returned minimally enriched.
    """
    result = EnrichmentResult()
    if not candidates:
        return result

    pmids: list[str | None] = [c.identifier for c in candidates]
    try:
        pmids = await resolve_pmids(candidates, client)
        valid_pmids = list(dict.fromkeys(p for p in pmids if p))

        if not valid_pmids:
            logger.warning("No valid PMIDs found, returning unenriched documents")
            result.enriched_docs = [create_enriched_document(c) for c in candidates]
            result.failed_count = len(candidates)
            return result

        logger.info("Fetching citation counts for %d PMIDs", len(valid_pmids))
        citation_counts = await client.fetch_citation_counts(valid_pmids)

        for candidate, pmid in zip(candidates, pmids, strict=True):
            doc = create_enriched_document(candidate, pmid)
            if pmid is None:
                result.failed_count += 1
            else:
                doc.pubmed.citation_count = citation_counts.get(pmid, 0)
                doc.stage = EnrichmentStage.CITATIONS_ONLY
                result.enriched_count += 1
            result.enriched_docs.append(doc)

    except Exception as e:
        logger.error("Citation enrichment failed: %s", e)
        result.success = False
        result.errors.append(str(e))
        result.enriched_count = 0
        result.failed_count = len(candidates)
        result.enriched_docs = [
            create_enriched_document(c, p)
            for c, p in zip(candidates, pmids, strict=True)
        ]

    return result


async def enrich_with_full_metadata(
    documents: list[EnrichedDocument], client: PubMedClient
) -> EnrichmentResult:
    """Attach summaries and abstracts, preserving existing citation counts.

    Summaries and abstracts are fetched concurrently. If either call fails,
    the other is cancelled and the documents are returned unchanged.
    """
    result = EnrichmentResult(enriched_docs=list(documents))
    if not documents:
        return result

    pmids = list(dict.fromkeys(doc.pmid for doc in documents if doc.pmid))
    if not pmids:
        logger.info("No PMIDs among top documents, skipping full metadata fetch")
        result.failed_count = len(documents)
        return result

    summaries_task = asyncio.create_task(client.fetch_summaries(pmids))
    abstracts_task = asyncio.create_task(client.fetch_abstracts(pmids))
    try:
        summaries, abstracts = await asyncio.gather(summaries_task, abstracts_task)
    except Exception as e:
        for task in (summaries_task, abstracts_task):
            task.cancel()
        logger.error("Full metadata enrichment failed: %s", e)
        result.success = False
        result.errors.append(str(e))
        result.failed_count = len(documents)
        return result

    merged: list[EnrichedDocument] = []
    for doc in documents:
        summary = summaries.get(doc.pmid) if doc.pmid else None
        abstract = abstracts.get(doc.pmid) if doc.pmid else None

        if summary is not None:
            merged.append(
                replace(
                    doc,
                    pubmed=pubmed_data_from_summary(
                        summary, doc.metadata, abstract, doc.pubmed.citation_count
                    ),
                    stage=EnrichmentStage.FULL,
                )
            )
            result.enriched_count += 1
        else:
            if abstract is not None:
                doc = replace(doc, pubmed=replace(doc.pubmed, abstract=abstract))
            merged.append(doc)
            result.failed_count += 1

    result.enriched_docs = merged
    return result
