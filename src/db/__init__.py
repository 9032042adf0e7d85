"""
MedCite Database Module

Database components:
- PostgreSQL with pgvector literature index
- SQLAlchemy model for the index
- Connection management
"""

from src.db.models import EMBEDDING_DIMENSION, Base, LiteratureChunk
from src.db.postgres import (
    MAX_OVERFLOW,
    POOL_RECYCLE,
    POOL_SIZE,
    check_database_health,
    close_db,
    get_engine,
    get_session_factory,
)

__all__ = [
    # Models
    "Base",
    "LiteratureChunk",
    # Constants
    "EMBEDDING_DIMENSION",
    "POOL_SIZE",
    "MAX_OVERFLOW",
    "POOL_RECYCLE",
    # Functions
    "get_engine",
    "get_session_factory",
    "check_database_health",
    "close_db",
]
