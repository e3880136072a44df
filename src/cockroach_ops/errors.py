"""Exceptions raised by cockroach_ops operations."""

from typing import Any, Optional


class CockroachOpsError(Exception):
    """Base class for data-access errors."""


class MissingIdentifierError(CockroachOpsError, ValueError):
    """An update was requested without a filter scoping it."""

    def __init__(self, message: str = "Missing primary key"):
        super().__init__(message)


class UnknownColumnError(CockroachOpsError, KeyError):
    """A filter or column list names a column the table does not have."""

    def __init__(self, table: str, column: str):
        self.table = table
        self.column = column
        super().__init__(f"Table '{table}' has no column '{column}'")

    def __str__(self) -> str:
        return self.args[0]


class BatchOperationError(CockroachOpsError):
    """One or more members of a batch operation failed.

    Every member is attempted before this is raised. ``failures`` maps each
    failed table name to its exception and ``results`` holds what the
    successful members returned, in request order.
    """

    def __init__(
        self,
        operation: str,
        failures: dict[str, BaseException],
        results: Optional[list[Any]] = None,
    ):
        self.operation = operation
        self.failures = failures
        self.results = results or []
        names = ", ".join(failures)
        super().__init__(f"{operation} failed for {len(failures)} table(s): {names}")

    @property
    def first_error(self) -> Optional[BaseException]:
        """The failure of the earliest member in request order."""
        return next(iter(self.failures.values()), None)
