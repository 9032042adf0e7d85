"""
MedCite LLM Module

LLM integration components:
- OllamaClient: Async HTTP client for Ollama API
- Classifier / Rewriter / Synthesizer: capability protocols and Ollama implementations
- Formatters: citations, sources section, document context, response cleanup
"""

from src.llm.capabilities import (
    Classifier,
    LLMUnavailableError,
    OllamaClassifier,
    OllamaRewriter,
    OllamaSynthesizer,
    Rewriter,
    Synthesizer,
)
from src.llm.formatters import FormattedCitation
from src.llm.ollama_client import OllamaClient

__all__ = [
    "OllamaClient",
    "Classifier",
    "Rewriter",
    "Synthesizer",
    "OllamaClassifier",
    "OllamaRewriter",
    "OllamaSynthesizer",
    "LLMUnavailableError",
    "FormattedCitation",
]
