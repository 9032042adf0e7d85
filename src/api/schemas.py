"""
Request/response models for the MedCite HTTP API.
"""

from typing import Any

from pydantic import BaseModel, field_validator

MIN_QUESTION_LENGTH = 3
MAX_QUESTION_LENGTH = 500


class QueryRequest(BaseModel):
    """Validated query request model."""

    question: str

    @field_validator("question")
    @classmethod
    def validate_question(cls, v: str) -> str:
        v = v.strip()
        if len(v) < MIN_QUESTION_LENGTH:
            raise ValueError(
                f"Question must be at least {MIN_QUESTION_LENGTH} characters"
            )
        if len(v) > MAX_QUESTION_LENGTH:
            raise ValueError(
                f"Question must be at most {MAX_QUESTION_LENGTH} characters"
            )
        return v


class QueryResponse(BaseModel):
    answer: str
    outcome: str
    optimized_query: str | None = None
    rewrite_fallback_used: bool = False
    sources: list[dict[str, Any]] = []
    query_id: str
    processing_time_ms: float
    steps: list[dict[str, Any]] = []
