"""
LLM Capabilities for MedCite

The pipeline talks to language models through three one-method protocols so
any provider (or a fixed-response fake) can be injected. The Ollama-backed
implementations below each use a client tuned for their task.
"""

import logging
import re
from typing import Protocol

from src.llm.ollama_client import OllamaClient

logger = logging.getLogger(__name__)

_STRICT_ANSWER = re.compile(r"^(yes|no)[.!]?$")


class LLMUnavailableError(Exception):
    """The model produced no usable output."""


class Classifier(Protocol):
    async def classify(self, prompt: str) -> bool:
        """True for "yes", False for "no". May raise on failure."""
        ...


class Rewriter(Protocol):
    async def rewrite(self, prompt: str) -> str:
        ...


class Synthesizer(Protocol):
    async def synthesize(self, system_prompt: str, user_prompt: str) -> str:
        ...


class OllamaClassifier:
    """Yes/no classification (minimal tokens, deterministic)."""

    def __init__(self, client: OllamaClient | None = None) -> None:
        self.client = client or OllamaClient(temperature=0.0, max_tokens=10)

    async def classify(self, prompt: str) -> bool:
        raw = await self.client.generate(prompt)
        answer = raw.strip().lower()
        if not answer:
            raise LLMUnavailableError("classifier returned no output")

        is_yes = "yes" in answer
        confidence = "high" if _STRICT_ANSWER.match(answer) else "medium"
        logger.info(
            "LLM classification: %s (confidence: %s)",
            "yes" if is_yes else "no",
            confidence,
        )
        return is_yes


class OllamaRewriter:
    """Query rewriting (slight creativity for synonym expansion)."""

    def __init__(self, client: OllamaClient | None = None) -> None:
        self.client = client or OllamaClient(temperature=0.3, max_tokens=100)

    async def rewrite(self, prompt: str) -> str:
        return (await self.client.generate(prompt)).strip()


class OllamaSynthesizer:
    """Long-form cited answers."""

    def __init__(self, client: OllamaClient | None = None) -> None:
        self.client = client or OllamaClient(temperature=0.3, max_tokens=800)

    async def synthesize(self, system_prompt: str, user_prompt: str) -> str:
        raw = await self.client.generate(user_prompt, system=system_prompt)
        if not raw.strip():
            raise LLMUnavailableError("synthesizer returned no output")
        return raw
