"""
PubMed E-utilities Client for MedCite

Async HTTP client for NCBI E-utilities with:
- ESummary: document summaries (metadata)
- ELink: citation counts via "cited by" links
- ESearch: PMID lookup by title/author
- EFetch: full abstracts (XML)
- Per-call timeout and bounded retry with exponential backoff

Docs: https://www.ncbi.nlm.nih.gov/books/NBK25500/
Rate limits: 3 req/s without API key, 10 req/s with API key
"""

import asyncio
import logging
import xml.etree.ElementTree as ET
from typing import Any

import httpx

from src.config import (
    NCBI_API_KEY,
    NCBI_EMAIL,
    PUBMED_RETRY_ATTEMPTS,
    PUBMED_RETRY_BASE_DELAY,
    PUBMED_TIMEOUT_SECONDS,
)
from src.pubmed.models import DocSummary

logger = logging.getLogger(__name__)

EUTILS_BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
CITED_IN_LINKNAME = "pubmed_pubmed_citedin"
TOOL_NAME = "MedCite"
USER_AGENT = "MedCite/0.1"


class PubMedError(Exception):
    """Base class for PubMed client failures."""


class PubMedRequestError(PubMedError):
    """A request still failed after all retry attempts."""

    def __init__(self, endpoint: str, attempts: int, message: str) -> None:
        super().__init__(f"{endpoint} failed after {attempts} attempt(s): {message}")
        self.endpoint = endpoint
        self.attempts = attempts


class PubMedTimeoutError(PubMedRequestError):
    """The final attempt timed out."""


class PubMedResponseError(PubMedError):
    """The service answered but the body could not be decoded."""


def extract_last_name(author: str | None) -> str | None:
    """Extract the surname from an author string.

    Handles "Doe, John", "Doe J" and "John Doe". Only the first author of a
    semicolon-separated list is considered. When the final token is two
    characters or fewer it is read as initials and the first token is the
    surname; this misreads "First Last" names with a short surname
    (e.g. "Wei Li" -> "Wei").
    """
    if not author:
        return None

    first_author = author.split(";")[0].strip()
    if not first_author:
        return None

    if "," in first_author:
        return first_author.split(",")[0].strip() or None

    parts = first_author.split()
    if len(parts) == 1:
        return parts[0]

    last_part = parts[-1]
    if len(last_part) <= 2:
        return parts[0]
    return last_part


class PubMedClient:
    """Stateless async client for NCBI E-utilities.

    Safe to share across concurrent requests: every call opens its own
    httpx.AsyncClient and no per-request state is kept on the instance.
    """

    def __init__(
        self,
        api_key: str | None = NCBI_API_KEY,
        email: str | None = NCBI_EMAIL,
        retry_attempts: int = PUBMED_RETRY_ATTEMPTS,
        timeout: float = PUBMED_TIMEOUT_SECONDS,
        retry_base_delay: float = PUBMED_RETRY_BASE_DELAY,
        base_url: str = EUTILS_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.email = email
        self.retry_attempts = retry_attempts
        self.timeout = timeout
        self.retry_base_delay = retry_base_delay
        self.base_url = base_url.rstrip("/")

    # ============================================
    # Public operations
    # ============================================

    async def fetch_summaries(self, pmids: list[str]) -> dict[str, DocSummary]:
        """Fetch ESummary metadata keyed by PMID."""
        if not pmids:
            return {}

        response = await self._get(
            "esummary.fcgi",
            {
                "db": "pubmed",
                "id": ",".join(pmids),
                "retmode": "json",
                "version": "2.0",
            },
        )
        data = self._decode_json(response, "esummary.fcgi")

        result = data.get("result") or {}
        summaries: dict[str, DocSummary] = {}
        for uid in result.get("uids") or []:
            entry = result.get(uid)
            if not isinstance(entry, dict):
                continue
            if entry.get("error"):
                logger.debug("ESummary error for PMID %s: %s", uid, entry["error"])
                continue
            summaries[str(uid)] = DocSummary.from_json(str(uid), entry)
        return summaries

    async def fetch_citation_counts(self, pmids: list[str]) -> dict[str, int]:
        """Count "cited by" links per PMID.

        Every requested PMID is present in the result; no links means 0, and
        linksets for PMIDs that were not requested are ignored. ELink groups
        comma-joined ids into a single linkset keyed by the first id, so
        counts are only exact per PMID when each id is sent as its own
        repeated ``id=`` parameter.
        """
        if not pmids:
            return {}

        response = await self._get(
            "elink.fcgi",
            {
                "dbfrom": "pubmed",
                "db": "pubmed",
                "id": ",".join(pmids),
                "linkname": CITED_IN_LINKNAME,
                "retmode": "json",
            },
        )
        data = self._decode_json(response, "elink.fcgi")

        counts = {pmid: 0 for pmid in pmids}
        for linkset in data.get("linksets") or []:
            ids = linkset.get("ids") or []
            if not ids:
                continue
            source_pmid = str(ids[0])
            if source_pmid not in counts:
                continue
            for linksetdb in linkset.get("linksetdbs") or []:
                if linksetdb.get("linkname") == CITED_IN_LINKNAME:
                    links = linksetdb.get("links") or linksetdb.get("link") or []
                    counts[source_pmid] = len(links)
                    break
        return counts

    async def fetch_abstracts(self, pmids: list[str]) -> dict[str, str]:
        """Fetch abstracts via EFetch. PMIDs without an abstract are omitted."""
        if not pmids:
            return {}

        response = await self._get(
            "efetch.fcgi",
            {
                "db": "pubmed",
                "id": ",".join(pmids),
                "retmode": "xml",
                "rettype": "abstract",
            },
        )
        return parse_abstracts_xml(response.text)

    async def resolve_identifier(
        self, title: str, author: str | None = None
    ) -> str | None:
        """Find at most one PMID by title and optional first-author surname.

        Returns None when nothing matches or the search fails.
        """
        if not isinstance(title, str) or not title.strip():
            return None

        term = f"{title.strip()}[Title]"
        last_name = extract_last_name(author)
        if last_name:
            term += f" AND {last_name}[Author]"

        try:
            response = await self._get(
                "esearch.fcgi",
                {"db": "pubmed", "term": term, "retmode": "json", "retmax": "1"},
            )
            data = self._decode_json(response, "esearch.fcgi")
        except PubMedError as e:
            logger.warning("PubMed search failed for title '%s...': %s", title[:40], e)
            return None

        idlist = (data.get("esearchresult") or {}).get("idlist") or []
        return str(idlist[0]) if idlist else None

    # ============================================
    # Transport
    # ============================================

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after the given zero-based failed attempt."""
        return (2**attempt) * self.retry_base_delay

    def _build_params(self, params: dict[str, str]) -> dict[str, str]:
        full = {"tool": TOOL_NAME}
        if self.api_key:
            full["api_key"] = self.api_key
        if self.email:
            full["email"] = self.email
        full.update(params)
        return full

    async def _get(self, endpoint: str, params: dict[str, str]) -> httpx.Response:
        """GET an E-utilities endpoint with timeout and bounded retry."""
        url = f"{self.base_url}/{endpoint}"
        query = self._build_params(params)
        max_attempts = self.retry_attempts + 1
        last_error: Exception | None = None

        for attempt in range(max_attempts):
            try:
                async with httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout)
                ) as client:
                    response = await client.get(
                        url, params=query, headers={"User-Agent": USER_AGENT}
                    )
                    response.raise_for_status()
                    return response

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    "PubMed %s timeout (attempt %d/%d): %s",
                    endpoint,
                    attempt + 1,
                    max_attempts,
                    e,
                )
            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    "PubMed %s HTTP error %d (attempt %d/%d)",
                    endpoint,
                    e.response.status_code,
                    attempt + 1,
                    max_attempts,
                )
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(
                    "PubMed %s request error (attempt %d/%d): %s",
                    endpoint,
                    attempt + 1,
                    max_attempts,
                    e,
                )

            if attempt < max_attempts - 1:
                wait = self.backoff_delay(attempt)
                logger.info("Retrying PubMed %s in %.1fs...", endpoint, wait)
                await asyncio.sleep(wait)

        error_cls = (
            PubMedTimeoutError
            if isinstance(last_error, httpx.TimeoutException)
            else PubMedRequestError
        )
        raise error_cls(endpoint, max_attempts, str(last_error)) from last_error

    @staticmethod
    def _decode_json(response: httpx.Response, endpoint: str) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise PubMedResponseError(f"{endpoint} returned invalid JSON") from e
        if not isinstance(data, dict):
            raise PubMedResponseError(f"{endpoint} returned unexpected payload")
        return data


def parse_abstracts_xml(xml_text: str) -> dict[str, str]:
    """Parse PMID -> abstract text from an EFetch PubmedArticleSet."""
    abstracts: dict[str, str] = {}
    if not xml_text or not xml_text.strip():
        return abstracts

    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        logger.error("Error parsing PubMed abstracts XML: %s", e)
        return abstracts

    for article in root.iter("PubmedArticle"):
        citation = article.find("MedlineCitation")
        if citation is None:
            continue

        pmid = (citation.findtext("PMID") or "").strip()
        if not pmid:
            continue

        # AbstractText may be repeated for labelled sections (BACKGROUND, METHODS, ...)
        parts = []
        for node in citation.findall("Article/Abstract/AbstractText"):
            text = "".join(node.itertext()).strip()
            if text:
                parts.append(text)

        if parts:
            abstracts[pmid] = " ".join(parts)

    return abstracts
