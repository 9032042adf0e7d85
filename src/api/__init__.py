"""
MedCite API Module

Request and response models for the HTTP surface.
"""

from src.api.schemas import QueryRequest, QueryResponse

__all__ = ["QueryRequest", "QueryResponse"]
