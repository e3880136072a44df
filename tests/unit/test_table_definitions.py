"""Unit tests for table and column definitions"""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import BigInteger, Boolean, DateTime, Integer, MetaData, String, Text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from cockroach_ops.models.table import (
    CREATED_AT,
    DELETED_AT,
    UPDATED_AT,
    ColumnSpec,
    TableDefinition,
)


class TestColumnSpec:
    """Column type mapping"""

    @pytest.mark.parametrize(
        "type_name, expected",
        [
            ("text", Text),
            ("integer", Integer),
            ("boolean", Boolean),
            ("date", DateTime),
            ("jsonb", JSONB),
        ],
    )
    def test_scalar_types(self, type_name, expected):
        column = ColumnSpec(name="c", type=type_name).to_column()
        assert isinstance(column.type, expected)

    def test_string_length(self):
        assert ColumnSpec(name="c", type="string", length=36).sql_type().length == 36
        assert ColumnSpec(name="c", type="string").sql_type().length == 255

    def test_date_is_timezone_aware(self):
        assert ColumnSpec(name="c", type="date").sql_type().timezone is True

    def test_array_of_strings(self):
        sql_type = ColumnSpec(
            name="roles", type="array", item_type="string", item_length=16
        ).sql_type()

        assert isinstance(sql_type, ARRAY)
        assert isinstance(sql_type.item_type, String)
        assert sql_type.item_type.length == 16

    def test_array_requires_item_type(self):
        with pytest.raises(ValidationError, match="requires an item_type"):
            ColumnSpec(name="roles", type="array")

    def test_nested_arrays_rejected(self):
        with pytest.raises(ValidationError, match="Nested arrays"):
            ColumnSpec(name="grid", type="array", item_type="array")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ColumnSpec(name="c", type="money")

    def test_primary_key_not_nullable(self):
        column = ColumnSpec(name="id", type="string", primary_key=True).to_column()
        assert column.primary_key is True
        assert column.nullable is False


class TestTableDefinition:
    """Building SQLAlchemy tables"""

    def test_explicit_primary_key(self):
        definition = TableDefinition(
            name="rgb",
            columns=[
                ColumnSpec(name="id", type="string", length=36, primary_key=True),
                ColumnSpec(name="color", type="string", length=36),
            ],
        )
        table = definition.build_table(MetaData())

        assert table.name == "rgb"
        assert [c.name for c in table.primary_key.columns] == ["id"]
        assert definition.primary_key == ["id"]
        assert isinstance(table.c.id.type, String)

    def test_generated_primary_key(self):
        definition = TableDefinition(
            name="massive", columns=[ColumnSpec(name="text", type="text")]
        )
        table = definition.build_table(MetaData())

        assert list(table.c.keys())[0] == "id"
        assert isinstance(table.c.id.type, BigInteger)
        assert table.c.id.primary_key is True
        assert definition.primary_key == ["id"]

    def test_timestamps(self):
        table = TableDefinition(name="nodata").build_table(MetaData())

        assert list(table.c.keys()) == ["id", CREATED_AT, UPDATED_AT]
        assert table.c[CREATED_AT].server_default is not None
        assert table.c[UPDATED_AT].onupdate is not None

    def test_without_timestamps(self):
        table = TableDefinition(name="bare", timestamps=False).build_table(MetaData())
        assert list(table.c.keys()) == ["id"]

    def test_paranoid_adds_marker(self):
        table = TableDefinition(name="soft", paranoid=True).build_table(MetaData())

        assert DELETED_AT in table.c
        assert table.c[DELETED_AT].nullable is True

    def test_dotted_name_kept_verbatim(self):
        table = TableDefinition(name="roster.preferenceset").build_table(MetaData())

        assert table.name == "roster.preferenceset"
        assert table.schema is None

    def test_duplicate_columns_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate columns"):
            TableDefinition(
                name="dup",
                columns=[
                    ColumnSpec(name="a", type="text"),
                    ColumnSpec(name="a", type="integer"),
                ],
            )

    def test_reserved_columns_rejected(self):
        with pytest.raises(ValidationError, match="Reserved column names"):
            TableDefinition(
                name="r", columns=[ColumnSpec(name=CREATED_AT, type="date")]
            )

    def test_coerce_record_parses_dates(self):
        definition = TableDefinition(
            name="users",
            columns=[
                ColumnSpec(name="id", type="string", primary_key=True),
                ColumnSpec(name="signupTimestamp", type="date"),
                ColumnSpec(name="emailVerificationTimestamp", type="date"),
            ],
        )
        record = {
            "id": "carla",
            "signupTimestamp": "2014-01-03T17:59:23.634Z",
            "emailVerificationTimestamp": None,
        }

        coerced = definition.coerce_record(record)

        assert coerced["signupTimestamp"] == datetime(
            2014, 1, 3, 17, 59, 23, 634000, tzinfo=timezone.utc
        )
        assert coerced["emailVerificationTimestamp"] is None
        assert coerced["id"] == "carla"
        # Input is not modified
        assert record["signupTimestamp"] == "2014-01-03T17:59:23.634Z"
