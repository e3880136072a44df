"""Table lifecycle, bulk loading and row CRUD operations."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Iterable, Mapping, MutableMapping, Sequence
from typing import Any, Optional, TypeVar

from sqlalchemy import MetaData, Table, delete, func, insert, select, update
from sqlalchemy.sql.elements import ColumnElement

from cockroach_ops.core.connection import DatabaseConnection
from cockroach_ops.errors import (
    BatchOperationError,
    MissingIdentifierError,
    UnknownColumnError,
)
from cockroach_ops.models.results import DeleteResult, LoadResult, UpdateResult
from cockroach_ops.models.table import DELETED_AT, TableDefinition

logger = logging.getLogger(__name__)

T = TypeVar("T")

Record = Mapping[str, Any]
Filter = Mapping[str, Any]


class TableOperations:
    """Creates, loads and queries a set of named tables.

    Tables become known to an instance when :meth:`create_one_table` succeeds
    and are kept in ``tables`` by name. Operations on a name that is not in
    the registry do nothing and return an empty result.
    """

    def __init__(
        self,
        connection: DatabaseConnection,
        tables: Optional[MutableMapping[str, Table]] = None,
    ):
        """
        Initialize table operations.

        Args:
            connection: Database connection manager
            tables: Registry of created tables, shared with the caller if given
        """
        self.connection = connection
        self.tables: MutableMapping[str, Table] = tables if tables is not None else {}
        self.metadata = MetaData()

    # ==================== Table lifecycle ====================

    async def create_one_table(self, definition: TableDefinition) -> Table:
        """
        Drop the table if it exists, then create it from its definition.

        Existing data is lost. The created table is registered under its
        name on success.

        Args:
            definition: Table definition

        Returns:
            The created SQLAlchemy table
        """
        existing = self.metadata.tables.get(definition.name)
        if existing is not None:
            self.metadata.remove(existing)
        table = definition.build_table(self.metadata)

        # Separate transactions: the drop must commit before the name is reused
        async with self.connection.begin() as conn:
            await conn.run_sync(table.drop, checkfirst=True)
        async with self.connection.begin() as conn:
            await conn.run_sync(table.create)

        self.tables[definition.name] = table
        logger.info(f"Created table '{definition.name}'")
        return table

    async def create_tables(
        self,
        definitions: Iterable[TableDefinition],
        ignore_errors: bool = False,
    ) -> list[Table]:
        """
        Create every table concurrently and wait for all of them.

        Args:
            definitions: Table definitions
            ignore_errors: Return the tables that were created instead of
                raising when some creations fail

        Returns:
            Created tables in definition order

        Raises:
            BatchOperationError: If any creation failed and ignore_errors is
                not set (raised only after every creation finished)
        """
        definitions = list(definitions)
        return await self._gather(
            "create_tables",
            [definition.name for definition in definitions],
            [self.create_one_table(definition) for definition in definitions],
            ignore_errors,
        )

    # ==================== Data loading ====================

    async def load_one_table(
        self, table_name: str, records: Iterable[Record]
    ) -> LoadResult:
        """
        Bulk insert records into a table.

        Records that set the same columns are inserted together; columns a
        record leaves out get their defaults. All batches share one
        transaction.

        Args:
            table_name: Registered table name
            records: Rows to insert as column-to-value mappings

        Returns:
            Inserted rows grouped by record shape, or a skipped result if the
            table is unknown
        """
        table = self._lookup(table_name)
        if table is None:
            return LoadResult(table=table_name, skipped=True)

        batches = self._group_records(table, records)
        if not batches:
            return LoadResult(table=table_name)

        inserted: list[dict[str, Any]] = []
        async with self.connection.begin() as conn:
            for batch in batches:
                result = await conn.execute(insert(table).returning(*table.c), batch)
                inserted.extend(dict(row._mapping) for row in result)

        logger.info(f"Loaded {len(inserted)} row(s) into '{table_name}'")
        return LoadResult(table=table_name, rows=inserted)

    async def load_tables(
        self,
        table_data: Mapping[str, Iterable[Record]],
        ignore_errors: bool = False,
    ) -> list[LoadResult]:
        """
        Load every dataset into its table concurrently and wait for all.

        Args:
            table_data: Records keyed by table name
            ignore_errors: Return the successful loads instead of raising
                when some loads fail

        Returns:
            Load results in mapping order

        Raises:
            BatchOperationError: If any load failed and ignore_errors is not
                set (raised only after every load finished)
        """
        names = list(table_data)
        return await self._gather(
            "load_tables",
            names,
            [self.load_one_table(name, table_data[name]) for name in names],
            ignore_errors,
        )

    async def delete_table_data(
        self, table_name: str, hard_delete: bool = False
    ) -> int:
        """
        Delete every row of a table.

        Args:
            table_name: Registered table name
            hard_delete: Remove rows permanently even if the table keeps a
                soft-delete marker

        Returns:
            Number of rows deleted, 0 if the table is unknown
        """
        table = self._lookup(table_name)
        if table is None:
            return 0
        return await self._remove_rows(table, None, hard_delete)

    # ==================== Row CRUD ====================

    async def select_rows(
        self, table_name: str, where: Optional[Filter] = None
    ) -> list[dict[str, Any]]:
        """
        Select all rows matching a filter.

        Args:
            table_name: Registered table name
            where: Column-to-value equality filter (all rows if empty)

        Returns:
            Matching rows ordered by primary key, empty if the table is unknown
        """
        table = self._lookup(table_name)
        if table is None:
            return []
        return await self._select(table, list(table.c), where)

    async def retrieve_value(
        self,
        table_name: str,
        columns: Sequence[str],
        where: Optional[Filter] = None,
    ) -> list[dict[str, Any]]:
        """
        Select only the given columns of the rows matching a filter.

        Args:
            table_name: Registered table name
            columns: Column names to return (all columns if empty)
            where: Column-to-value equality filter

        Returns:
            Matching rows restricted to the columns
        """
        table = self._lookup(table_name)
        if table is None:
            return []
        selected = [self._column(table, name) for name in columns] or list(table.c)
        return await self._select(table, selected, where)

    async def insert_record(self, table_name: str, record: Record) -> LoadResult:
        """Insert a single record."""
        return await self.load_one_table(table_name, [record])

    async def update_fields(
        self,
        table_name: str,
        attributes: Mapping[str, Any],
        where: Optional[Filter] = None,
    ) -> UpdateResult:
        """
        Update columns of the rows matching a filter.

        Args:
            table_name: Registered table name
            attributes: New column values. When empty nothing is written
                and the result reports 0 changed rows, whatever the filter
                matches
            where: Column-to-value filter identifying the rows

        Returns:
            Number of changed rows and the rows after the change

        Raises:
            MissingIdentifierError: If no filter is given
        """
        if not where:
            raise MissingIdentifierError()

        table = self._lookup(table_name)
        if table is None:
            return UpdateResult(table=table_name)

        values = {
            self._column(table, name).name: value
            for name, value in attributes.items()
        }
        if not values:
            return UpdateResult(table=table_name)

        stmt = (
            update(table)
            .where(*self._conditions(table, where))
            .values(values)
            .returning(*table.c)
        )
        async with self.connection.begin() as conn:
            result = await conn.execute(stmt)
            rows = [dict(row._mapping) for row in result]

        return UpdateResult(table=table_name, affected_count=len(rows), rows=rows)

    async def delete_record(
        self,
        table_name: str,
        key_filter: Filter,
        hard_delete: bool = False,
    ) -> DeleteResult:
        """
        Delete the rows matching a key filter.

        Args:
            table_name: Registered table name
            key_filter: Column-to-value filter, normally the primary key
            hard_delete: Remove rows permanently even if the table keeps a
                soft-delete marker

        Returns:
            Number of rows deleted
        """
        table = self._lookup(table_name)
        if table is None:
            return DeleteResult(table=table_name, hard=hard_delete)

        count = await self._remove_rows(table, key_filter, hard_delete)
        return DeleteResult(
            table=table_name,
            deleted_count=count,
            hard=hard_delete or not self.is_paranoid(table),
        )

    # ==================== Registry helpers ====================

    def get_table(self, table_name: str) -> Optional[Table]:
        """Registered table for a name, if any."""
        return self.tables.get(table_name)

    def has_table(self, table_name: str) -> bool:
        """Check if a table is registered."""
        return table_name in self.tables

    @staticmethod
    def is_paranoid(table: Table) -> bool:
        """Check if a table keeps a soft-delete marker column."""
        return DELETED_AT in table.c

    def _lookup(self, table_name: str) -> Optional[Table]:
        table = self.tables.get(table_name)
        if table is None:
            logger.warning(f"No table defined for '{table_name}'")
        return table

    # ==================== Statement building ====================

    @staticmethod
    def _column(table: Table, name: str) -> Any:
        try:
            return table.c[name]
        except KeyError:
            raise UnknownColumnError(table.name, name) from None

    def _conditions(
        self,
        table: Table,
        where: Optional[Filter],
        include_deleted: bool = False,
    ) -> list[ColumnElement[bool]]:
        """Equality conditions for a filter, hiding soft-deleted rows."""
        conditions = [
            self._column(table, name) == value
            for name, value in (where or {}).items()
        ]
        if self.is_paranoid(table) and not include_deleted:
            conditions.append(table.c[DELETED_AT].is_(None))
        return conditions

    def _group_records(
        self, table: Table, records: Iterable[Record]
    ) -> list[list[dict[str, Any]]]:
        """
        Batch records by the set of columns they give values for.

        Columns a record leaves out keep their server or column defaults,
        so records of different shapes never share an executemany batch.
        """
        batches: dict[frozenset[str], list[dict[str, Any]]] = {}
        for record in records:
            record = dict(record)
            for key in record:
                self._column(table, key)
            batches.setdefault(frozenset(record), []).append(record)
        return list(batches.values())

    async def _select(
        self, table: Table, columns: list[Any], where: Optional[Filter]
    ) -> list[dict[str, Any]]:
        stmt = (
            select(*columns)
            .where(*self._conditions(table, where))
            .order_by(*table.primary_key.columns)
        )
        async with self.connection.get_connection() as conn:
            result = await conn.execute(stmt)
            return [dict(row._mapping) for row in result]

    async def _remove_rows(
        self, table: Table, where: Optional[Filter], hard_delete: bool
    ) -> int:
        soft = self.is_paranoid(table) and not hard_delete
        if soft:
            stmt = (
                update(table)
                .where(*self._conditions(table, where))
                .values({DELETED_AT: func.now()})
            )
        else:
            stmt = delete(table).where(
                *self._conditions(table, where, include_deleted=True)
            )

        async with self.connection.begin() as conn:
            result = await conn.execute(stmt)
            count = result.rowcount

        logger.info(
            f"{'Soft-deleted' if soft else 'Deleted'} {count} row(s) "
            f"from '{table.name}'"
        )
        return count

    # ==================== Batch orchestration ====================

    async def _gather(
        self,
        operation: str,
        names: list[str],
        requests: list[Awaitable[T]],
        ignore_errors: bool,
    ) -> list[T]:
        """
        Run requests concurrently and join once all have finished.

        No request is cancelled when another fails. Failures are collected
        by table name and raised together unless ignore_errors is set.
        """
        start = time.perf_counter()
        outcomes = await asyncio.gather(*requests, return_exceptions=True)

        results: list[T] = []
        failures: dict[str, BaseException] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                logger.error(f"{operation}: failed for '{name}'", exc_info=outcome)
                failures[name] = outcome
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)

        elapsed = time.perf_counter() - start
        logger.info(
            f"{operation}: {len(results)} succeeded, {len(failures)} failed "
            f"in {elapsed:.3f}s"
        )

        if failures and not ignore_errors:
            error = BatchOperationError(operation, failures, results)
            raise error from error.first_error
        return results
