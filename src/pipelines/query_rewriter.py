"""
Query Rewriter for MedCite

Turns a conversational question into a keyword-dense search query. Never
fails: any problem with the rewrite (empty output, exception, timeout) falls
back to the original text.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from src.config import REWRITE_TIMEOUT_SECONDS
from src.llm.capabilities import Rewriter
from src.pipelines.prompts import build_optimization_prompt

logger = logging.getLogger(__name__)


@dataclass
class RewriteResult:
    original_query: str
    optimized_query: str
    success: bool
    processing_time_ms: float
    error: str | None = None

    @property
    def fallback_used(self) -> bool:
        return not self.success


class QueryRewriter:
    def __init__(self, rewriter: Rewriter, timeout: float = REWRITE_TIMEOUT_SECONDS):
        self.rewriter = rewriter
        self.timeout = timeout

    async def rewrite(self, query: str) -> RewriteResult:
        start = time.time()
        try:
            optimized = await asyncio.wait_for(
                self.rewriter.rewrite(build_optimization_prompt(query)),
                timeout=self.timeout,
            )
            optimized = (optimized or "").strip()
            if not optimized:
                raise ValueError("LLM returned empty response")
        except asyncio.TimeoutError:
            return self._fallback(query, start, f"timed out after {self.timeout}s")
        except Exception as e:
            return self._fallback(query, start, str(e) or type(e).__name__)

        elapsed = round((time.time() - start) * 1000, 1)
        logger.info("Query optimized to '%s' (%.0fms)", optimized, elapsed)
        return RewriteResult(
            original_query=query,
            optimized_query=optimized,
            success=True,
            processing_time_ms=elapsed,
        )

    @staticmethod
    def _fallback(query: str, start: float, error: str) -> RewriteResult:
        logger.warning("Query optimization failed, using original query: %s", error)
        return RewriteResult(
            original_query=query,
            optimized_query=query,
            success=False,
            processing_time_ms=round((time.time() - start) * 1000, 1),
            error=error,
        )
