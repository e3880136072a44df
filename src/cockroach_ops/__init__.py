"""
cockroach_ops - Async data-access layer for CockroachDB

Creates tables from static definitions, bulk-loads seed data and runs basic
CRUD operations through SQLAlchemy's asyncio extension.
"""

__version__ = "0.1.0"

from cockroach_ops.core import DatabaseConnection, TableOperations
from cockroach_ops.errors import (
    BatchOperationError,
    CockroachOpsError,
    MissingIdentifierError,
    UnknownColumnError,
)
from cockroach_ops.models import (
    ColumnSpec,
    DatabaseConfig,
    DeleteResult,
    LoadResult,
    TableDefinition,
    UpdateResult,
)

__all__ = [
    "DatabaseConfig",
    "DatabaseConnection",
    "TableOperations",
    "ColumnSpec",
    "TableDefinition",
    "LoadResult",
    "UpdateResult",
    "DeleteResult",
    "CockroachOpsError",
    "MissingIdentifierError",
    "UnknownColumnError",
    "BatchOperationError",
]
