"""
Query Embedding for MedCite

Local sentence-transformers model used to embed search queries before the
pgvector similarity lookup. The index is built offline with the same model.
"""

import asyncio
import logging
import os
from functools import lru_cache

logger = logging.getLogger(__name__)

# Task-type prefix for asymmetric retrieval models (nomic-embed-text)
QUERY_PREFIX = "search_query: "

DEFAULT_EMBEDDING_MODEL = os.environ.get(
    "EMBEDDING_MODEL_HF", "nomic-ai/nomic-embed-text-v1.5"
)
DEFAULT_EMBEDDING_DIMENSION = int(os.environ.get("EMBEDDING_DIMENSION", "768"))


@lru_cache(maxsize=1)
def _load_st_model(model_name: str):
    """Load sentence-transformers model once and cache it."""
    from sentence_transformers import SentenceTransformer

    logger.info("Loading sentence-transformers model: %s", model_name)
    model = SentenceTransformer(model_name, trust_remote_code=True)
    logger.info(
        "Model loaded, dimension: %d", model.get_sentence_embedding_dimension()
    )
    return model


def _encode_sync(model, texts: list[str]) -> list[list[float]]:
    """Run model.encode synchronously; called via asyncio.to_thread."""
    vectors = model.encode(texts, show_progress_bar=False)
    return [v.tolist() for v in vectors]


class EmbeddingGenerator:
    def __init__(self, model_name: str | None = None):
        self.model_name = model_name or DEFAULT_EMBEDDING_MODEL
        self.dimension = DEFAULT_EMBEDDING_DIMENSION
        self._st_model = None

    def _get_model(self):
        """Lazy-load the sentence-transformers model."""
        if self._st_model is None:
            self._st_model = _load_st_model(self.model_name)
        return self._st_model

    async def embed_query(self, text: str) -> list[float]:
        """Embed a single search query.

        Runs the CPU-bound encode in a thread pool so it doesn't block the
        asyncio event loop.
        """
        model = self._get_model()
        vectors = await asyncio.to_thread(_encode_sync, model, [QUERY_PREFIX + text])
        return vectors[0]
