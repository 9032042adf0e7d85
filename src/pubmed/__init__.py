"""
MedCite PubMed Module

Bibliographic enrichment from NCBI E-utilities:
- PubMedClient: summaries, citation counts, abstracts, identifier search
- Enrichment helpers: citations-only and full-metadata passes
"""

from src.pubmed.client import (
    PubMedClient,
    PubMedError,
    PubMedRequestError,
    PubMedResponseError,
    PubMedTimeoutError,
    extract_last_name,
)
from src.pubmed.models import (
    DocSummary,
    EnrichedDocument,
    EnrichmentResult,
    EnrichmentStage,
    PubMedData,
)

__all__ = [
    # Client
    "PubMedClient",
    "PubMedError",
    "PubMedRequestError",
    "PubMedResponseError",
    "PubMedTimeoutError",
    "extract_last_name",
    # Models
    "DocSummary",
    "EnrichedDocument",
    "EnrichmentResult",
    "EnrichmentStage",
    "PubMedData",
]
