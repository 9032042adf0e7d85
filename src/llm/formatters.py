"""
Response Formatters for MedCite

Turns enriched documents into LLM context and numbered source citations,
and assembles the final answer text with its sources section and disclaimer.
"""

import re
from dataclasses import dataclass

from src.pubmed.models import EnrichedDocument

MAX_EXCERPT_CHARS = 500

YEAR_PATTERN = re.compile(r"\b(?:19|20)\d{2}\b")

MEDICAL_DISCLAIMER = (
    "\n\nMEDICAL DISCLAIMER:\n"
    "This information is for educational purposes only and should not replace "
    "professional medical advice. Please consult a qualified healthcare provider "
    "for diagnosis and treatment decisions."
)


@dataclass
class FormattedCitation:
    """A numbered source as shown under the answer."""

    index: int
    title: str
    journal: str
    year: str
    citation_count: int
    pmid: str | None = None
    doi: str | None = None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "title": self.title,
            "journal": self.journal,
            "year": self.year,
            "citation_count": self.citation_count,
            "pmid": self.pmid,
            "doi": self.doi,
        }


def extract_year(date_string: str | None) -> str:
    """First 19xx/20xx year in a date string, or "N/A"."""
    if not date_string:
        return "N/A"
    match = YEAR_PATTERN.search(date_string)
    return match.group(0) if match else "N/A"


def format_citations(documents: list[EnrichedDocument]) -> list[FormattedCitation]:
    citations = []
    for i, doc in enumerate(documents, 1):
        pubmed = doc.pubmed
        date = pubmed.publication_date
        if not date or date == "Unknown":
            date = doc.metadata.get("last_updated") or ""
        citations.append(
            FormattedCitation(
                index=i,
                title=pubmed.title or doc.metadata.get("title") or "Untitled",
                journal=pubmed.journal or "Unknown Journal",
                year=extract_year(date),
                citation_count=pubmed.citation_count,
                pmid=doc.pmid,
                doi=pubmed.doi,
            )
        )
    return citations


def format_sources_section(citations: list[FormattedCitation]) -> str:
    if not citations:
        return ""

    lines = []
    for c in citations:
        parts = [f"[{c.index}]", c.title, "-", c.journal, f"({c.year})"]
        if c.citation_count > 0:
            parts.append(f"| Cited by: {c.citation_count} articles")
        lines.append(" ".join(parts))

    return "\n\nSOURCES:\n" + "\n".join(lines)


def format_medical_response(answer: str, citations: list[FormattedCitation]) -> str:
    return answer + format_sources_section(citations) + MEDICAL_DISCLAIMER


def build_document_context(documents: list[EnrichedDocument]) -> str:
    """Numbered document blocks for the synthesis prompt.

    The PubMed abstract comes first; the indexed excerpt is truncated to
    keep the prompt within the model's context window.
    """
    blocks = []
    for i, doc in enumerate(documents, 1):
        pubmed = doc.pubmed
        parts = [f"\n[Document {i}]"]

        title = pubmed.title if pubmed.title != "Unknown" else doc.metadata.get("title")
        if title:
            parts.append(f"Title: {title}")
        if pubmed.journal and pubmed.journal != "Unknown":
            parts.append(f"Journal: {pubmed.journal}")
        if pubmed.publication_date and pubmed.publication_date != "Unknown":
            parts.append(f"Published: {pubmed.publication_date}")
        if pubmed.abstract:
            parts.append(f"\nAbstract: {pubmed.abstract}")
        if doc.content:
            excerpt = doc.content[:MAX_EXCERPT_CHARS].strip()
            ellipsis = "..." if len(doc.content) > MAX_EXCERPT_CHARS else ""
            parts.append(f"\nKey Content: {excerpt}{ellipsis}")
        if pubmed.article_types:
            parts.append(f"\nArticle Type: {', '.join(pubmed.article_types)}")

        blocks.append("\n".join(parts))

    return "\n\n---".join(blocks)


def calculate_response_metadata(documents: list[EnrichedDocument]) -> dict:
    """Citation statistics over documents with a non-zero count."""
    counts = [d.pubmed.citation_count for d in documents if d.pubmed.citation_count > 0]
    total = sum(counts)
    return {
        "documents_used": len(documents),
        "average_citation_count": round(total / len(counts)) if counts else 0,
        "total_citation_count": total,
    }


def clean_response_text(text: str) -> str:
    """Normalize whitespace in model output."""
    text = text.strip()
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r" +$", "", text, flags=re.MULTILINE)
    # Single space after full stops, but leave decimals like 2.5 alone
    text = re.sub(r"\.([^\s\d])", r". \1", text)
    return text
