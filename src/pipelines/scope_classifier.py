"""
Scope Classifier for MedCite

Two-tier decision on whether a question is medical:
1. Keyword matching for obvious cases (medical list first, then non-medical)
2. LLM classification for everything else

A classifier failure is not defaulted to either branch; it surfaces as
ScopeClassificationError.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from src.llm.capabilities import Classifier
from src.pipelines.prompts import build_classification_prompt
from src.pipelines.scope_keywords import MEDICAL_KEYWORDS, NON_MEDICAL_KEYWORDS

logger = logging.getLogger(__name__)


class ScopeClassificationError(Exception):
    """The LLM classifier failed on an ambiguous query."""


@dataclass
class ScopeDecision:
    is_medical: bool
    method: str  # "keyword" or "llm"
    matched_keyword: str | None = None


def find_keyword(query: str, keywords: Sequence[str]) -> str | None:
    """First keyword (in list order) contained in the query, ignoring case."""
    lower_query = query.lower()
    for keyword in keywords:
        if keyword in lower_query:
            return keyword
    return None


class ScopeClassifier:
    """Keyword fast path with LLM fallback for ambiguous queries."""

    def __init__(
        self,
        classifier: Classifier,
        medical_keywords: Sequence[str] = MEDICAL_KEYWORDS,
        non_medical_keywords: Sequence[str] = NON_MEDICAL_KEYWORDS,
    ):
        self.classifier = classifier
        self.medical_keywords = [k.lower() for k in medical_keywords]
        self.non_medical_keywords = [k.lower() for k in non_medical_keywords]

    async def classify(self, query: str) -> ScopeDecision:
        keyword = find_keyword(query, self.medical_keywords)
        if keyword:
            logger.info("Scope: MEDICAL (keyword match: '%s')", keyword)
            return ScopeDecision(is_medical=True, method="keyword", matched_keyword=keyword)

        keyword = find_keyword(query, self.non_medical_keywords)
        if keyword:
            logger.info("Scope: NOT MEDICAL (keyword match: '%s')", keyword)
            return ScopeDecision(is_medical=False, method="keyword", matched_keyword=keyword)

        logger.info("Ambiguous query, using LLM classification")
        try:
            is_medical = await self.classifier.classify(
                build_classification_prompt(query)
            )
        except Exception as e:
            logger.error("LLM scope classification failed: %s", e)
            raise ScopeClassificationError(
                f"Scope classification failed: {e}"
            ) from e

        logger.info("Scope: %s (LLM)", "MEDICAL" if is_medical else "NOT MEDICAL")
        return ScopeDecision(is_medical=bool(is_medical), method="llm")
