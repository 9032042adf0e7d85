"""
MedCite Test Configuration

Pytest fixtures and configuration for the test suite.
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.main import app
from src.pubmed.models import (
    DocSummary,
    EnrichedDocument,
    EnrichmentStage,
    PubMedData,
)
from src.rag.vector_search import CandidateDocument

# ============================================
# Capability Fakes
# ============================================


class FakeClassifier:
    """Fixed yes/no answer, or raises the given error."""

    def __init__(self, answer: bool = True, error: Exception | None = None):
        self.answer = answer
        self.error = error
        self.prompts: list[str] = []

    async def classify(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.answer


class FakeRewriter:
    def __init__(self, output: str = "", error: Exception | None = None):
        self.output = output
        self.error = error
        self.prompts: list[str] = []

    async def rewrite(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.output


class FakeSynthesizer:
    """Returns the queued outputs in order; Exceptions in the queue are raised."""

    def __init__(self, *outputs):
        self.outputs = list(outputs) or ["Answer citing [1]."]
        self.calls: list[tuple[str, str]] = []

    async def synthesize(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        output = self.outputs.pop(0) if len(self.outputs) > 1 else self.outputs[0]
        if isinstance(output, Exception):
            raise output
        return output


class FakeVectorSearch:
    def __init__(self, candidates: list[CandidateDocument] | None = None):
        self.candidates = candidates or []
        self.calls: list[tuple[str, int]] = []

    async def search(self, query: str, k: int) -> list[CandidateDocument]:
        self.calls.append((query, k))
        return self.candidates[:k]


class FakePubMedClient:
    """In-memory stand-in for PubMedClient.

    citations: pmid -> count; summaries: pmid -> DocSummary; abstracts:
    pmid -> text; search: title -> pmid. Set *_error to make a call raise.
    """

    def __init__(
        self,
        citations: dict[str, int] | None = None,
        summaries: dict[str, DocSummary] | None = None,
        abstracts: dict[str, str] | None = None,
        search: dict[str, str] | None = None,
    ):
        self.citations = citations or {}
        self.summaries = summaries or {}
        self.abstracts = abstracts or {}
        self.search = search or {}
        self.citation_error: Exception | None = None
        self.summary_error: Exception | None = None
        self.abstract_error: Exception | None = None
        self.calls: list[tuple[str, list[str]]] = []

    async def fetch_citation_counts(self, pmids: list[str]) -> dict[str, int]:
        self.calls.append(("citations", list(pmids)))
        if self.citation_error is not None:
            raise self.citation_error
        return {pmid: self.citations.get(pmid, 0) for pmid in pmids}

    async def fetch_summaries(self, pmids: list[str]) -> dict[str, DocSummary]:
        self.calls.append(("summaries", list(pmids)))
        if self.summary_error is not None:
            raise self.summary_error
        return {p: self.summaries[p] for p in pmids if p in self.summaries}

    async def fetch_abstracts(self, pmids: list[str]) -> dict[str, str]:
        self.calls.append(("abstracts", list(pmids)))
        if self.abstract_error is not None:
            raise self.abstract_error
        return {p: self.abstracts[p] for p in pmids if p in self.abstracts}

    async def resolve_identifier(self, title: str, author: str | None = None):
        self.calls.append(("search", [title]))
        return self.search.get(title)

    def calls_to(self, name: str) -> list[list[str]]:
        return [ids for call, ids in self.calls if call == name]


# ============================================
# Sample Data Helpers
# ============================================


def make_candidate(
    pmid: str | None = None,
    title: str = "Sample article",
    similarity: float = 0.8,
    content: str = "Sample literature excerpt.",
    **metadata,
) -> CandidateDocument:
    meta = {"pmid": pmid or "", "title": title, **metadata}
    return CandidateDocument(
        content=content, metadata=meta, vector_similarity=similarity
    )


def make_enriched(
    pmid: str | None = None,
    similarity: float = 0.8,
    citations: int = 0,
    title: str = "Sample article",
    stage: EnrichmentStage = EnrichmentStage.CITATIONS_ONLY,
    **pubmed_fields,
) -> EnrichedDocument:
    return EnrichedDocument(
        content="Sample literature excerpt.",
        metadata={"pmid": pmid or "", "title": title},
        pmid=pmid,
        vector_similarity=similarity,
        pubmed=PubMedData(title=title, citation_count=citations, **pubmed_fields),
        stage=stage,
    )


# ============================================
# Fixtures
# ============================================


@pytest.fixture(autouse=True)
def reset_pipeline_metrics() -> Generator[None, None, None]:
    """Start every test with zeroed in-process metrics."""
    from src.observability.metrics import reset_metrics

    reset_metrics()
    yield


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client without lifespan startup (no DB or Ollama needed)."""
    yield TestClient(app)


@pytest.fixture
def fake_pubmed() -> FakePubMedClient:
    return FakePubMedClient()


@pytest.fixture
def sample_summary() -> DocSummary:
    """ESummary entry for a well-cited review article."""
    return DocSummary.from_json(
        "31234567",
        {
            "uid": "31234567",
            "title": "Type 2 diabetes: pathophysiology and management.",
            "authors": [{"name": "Doe J"}, {"name": "Roe R"}],
            "source": "Lancet",
            "fulljournalname": "The Lancet",
            "pubdate": "2019 Jun 15",
            "sortpubdate": "2019/06/15 00:00",
            "pubtype": ["Journal Article", "Review"],
            "articleids": [
                {"idtype": "pubmed", "value": "31234567"},
                {"idtype": "doi", "value": "10.1016/S0140-6736(19)31234-5"},
                {"idtype": "pmc", "value": "PMC6543210"},
            ],
        },
    )


# ============================================
# Marker Configuration
# ============================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")
    config.addinivalue_line("markers", "requires_ollama: test requires Ollama service")
    config.addinivalue_line("markers", "requires_db: test requires database connection")
