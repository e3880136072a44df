"""Core connection and table operation components."""

from .connection import DatabaseConnection
from .operations import TableOperations

__all__ = [
    "DatabaseConnection",
    "TableOperations",
]
