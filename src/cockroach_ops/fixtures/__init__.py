"""Table definitions and seed datasets used to initialize a test database."""

from pathlib import Path
from typing import Any

from cockroach_ops.models.table import ColumnSpec, TableDefinition
from cockroach_ops.utils.serialization import read_json

DATA_DIR = Path(__file__).parent / "data"

TABLE_DEFINITIONS: list[TableDefinition] = [
    TableDefinition(
        name="rgb",
        columns=[
            ColumnSpec(name="id", type="string", length=36, primary_key=True),
            ColumnSpec(name="color", type="string", length=36),
            ColumnSpec(name="colourMap", type="jsonb"),
        ],
    ),
    TableDefinition(
        name="roster.preferenceset",
        columns=[
            ColumnSpec(name="name", type="string", length=64, primary_key=True),
            ColumnSpec(name="description", type="string", length=64),
            ColumnSpec(name="prefs_json", type="jsonb"),
        ],
    ),
    TableDefinition(
        name="massive",
        columns=[ColumnSpec(name="text", type="text")],
    ),
    TableDefinition(
        name="users",
        columns=[
            ColumnSpec(name="id", type="string", length=64, primary_key=True),
            ColumnSpec(name="rev", type="string", length=64),
            ColumnSpec(name="password_scheme", type="string", length=64),
            ColumnSpec(name="iterations", type="integer"),
            ColumnSpec(name="username", type="string", length=64),
            ColumnSpec(name="type", type="string", length=16),
            ColumnSpec(name="name", type="string", length=16),
            ColumnSpec(name="email", type="string", length=32),
            ColumnSpec(name="roles", type="array", item_type="string", item_length=16),
            ColumnSpec(name="signupTimestamp", type="date"),
            ColumnSpec(name="failedLoginAttempts", type="integer"),
            ColumnSpec(name="derived_key", type="string"),
            ColumnSpec(name="salt", type="string"),
            ColumnSpec(name="emailVerificationTimestamp", type="date"),
            ColumnSpec(name="verified", type="boolean"),
        ],
    ),
    TableDefinition(name="nodata"),
]

# Dataset file per table; tables without an entry have no seed data
DATA_FILES = {
    "users": "users.json",
    "rgb": "rgb.json",
    "roster.preferenceset": "prefs_sets.json",
    "massive": "massive.json",
}


def get_table_definition(name: str) -> TableDefinition:
    """
    Look up a bundled table definition by name.

    Raises:
        KeyError: If no bundled table has that name
    """
    for definition in TABLE_DEFINITIONS:
        if definition.name == name:
            return definition
    raise KeyError(name)


def load_table_data() -> dict[str, list[dict[str, Any]]]:
    """
    Read the bundled seed datasets.

    Date columns are converted from ISO strings so the records can be
    inserted as-is.

    Returns:
        Records keyed by table name
    """
    table_data = {}
    for name, filename in DATA_FILES.items():
        definition = get_table_definition(name)
        records = read_json(DATA_DIR / filename)
        table_data[name] = [definition.coerce_record(record) for record in records]
    return table_data
