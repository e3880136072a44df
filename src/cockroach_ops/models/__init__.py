"""Pydantic models for configuration, table definitions and results."""

from .config import DatabaseConfig
from .results import DeleteResult, LoadResult, UpdateResult
from .table import ColumnSpec, TableDefinition

__all__ = [
    "DatabaseConfig",
    "ColumnSpec",
    "TableDefinition",
    "LoadResult",
    "UpdateResult",
    "DeleteResult",
]
