"""Pytest configuration and shared fixtures for database tests"""

import os
import sys
from typing import AsyncGenerator, Optional

import pytest
from dotenv import load_dotenv

from cockroach_ops.core import DatabaseConnection, TableOperations
from cockroach_ops.fixtures import TABLE_DEFINITIONS, load_table_data
from cockroach_ops.models.config import DatabaseConfig
from cockroach_ops.models.table import TableDefinition

# Load environment variables
load_dotenv()

# Fix for Windows: asyncpg requires SelectorEventLoop on Windows
if sys.platform == "win32":
    import asyncio

    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]


# ==================== Configuration Fixtures ====================


@pytest.fixture(scope="session")
def crdb_database_url() -> Optional[str]:
    """CockroachDB test database URL from environment"""
    return os.getenv("COCKROACH_TEST_DATABASE_URL")


@pytest.fixture
def offline_config() -> DatabaseConfig:
    """Configuration pointing at a port nothing listens on"""
    return DatabaseConfig(host="127.0.0.1", port=1, database="nowhere")


@pytest.fixture
def table_definitions() -> list[TableDefinition]:
    """Bundled table definitions"""
    return list(TABLE_DEFINITIONS)


@pytest.fixture
def table_data() -> dict[str, list[dict]]:
    """Bundled seed datasets keyed by table name"""
    return load_table_data()


# ==================== Offline Fixtures ====================


@pytest.fixture
async def offline_connection(
    offline_config: DatabaseConfig,
) -> AsyncGenerator[DatabaseConnection, None]:
    """Connection whose first real query fails"""
    connection = DatabaseConnection(offline_config)
    try:
        yield connection
    finally:
        await connection.dispose()


@pytest.fixture
async def offline_operations(offline_connection: DatabaseConnection) -> TableOperations:
    """Table operations with an empty registry and no reachable database"""
    return TableOperations(offline_connection)


# ==================== CockroachDB Fixtures ====================


@pytest.fixture
async def crdb_config(crdb_database_url: Optional[str]) -> DatabaseConfig:
    """CockroachDB database configuration"""
    if not crdb_database_url:
        pytest.skip("COCKROACH_TEST_DATABASE_URL not set in environment")
    return DatabaseConfig.from_url(crdb_database_url)


@pytest.fixture
async def crdb_connection(
    crdb_config: DatabaseConfig,
) -> AsyncGenerator[DatabaseConnection, None]:
    """CockroachDB database connection with proper cleanup"""
    connection = DatabaseConnection(crdb_config)
    await connection.initialize()
    try:
        yield connection
    finally:
        await connection.dispose()


@pytest.fixture
async def crdb_operations(crdb_connection: DatabaseConnection) -> TableOperations:
    """Table operations against the test database, nothing created yet"""
    return TableOperations(crdb_connection)


@pytest.fixture
async def loaded_operations(
    crdb_operations: TableOperations,
    table_definitions: list[TableDefinition],
    table_data: dict[str, list[dict]],
) -> TableOperations:
    """Table operations with every bundled table created and loaded"""
    await crdb_operations.create_tables(table_definitions)
    await crdb_operations.load_tables(table_data)
    return crdb_operations


# ==================== Pytest Configuration ====================


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "cockroachdb: CockroachDB-specific tests")
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring database"
    )
