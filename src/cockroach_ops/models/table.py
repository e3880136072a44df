"""Table and column definition models."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, model_validator
from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.types import TypeEngine

ColumnType = Literal["string", "text", "integer", "boolean", "date", "jsonb", "array"]

CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"
DELETED_AT = "deletedAt"

# Columns the database fills in on its own
GENERATED_COLUMNS = frozenset({CREATED_AT, UPDATED_AT, DELETED_AT})

DEFAULT_STRING_LENGTH = 255


class ColumnSpec(BaseModel):
    """Definition of a single table column."""

    name: str = Field(..., description="Column name")
    type: ColumnType = Field(..., description="Column data type")
    length: Optional[int] = Field(
        None, ge=1, description="Maximum length for string types"
    )
    item_type: Optional[ColumnType] = Field(
        None, description="Element type for array columns"
    )
    item_length: Optional[int] = Field(
        None, ge=1, description="Maximum length for string array elements"
    )
    primary_key: bool = Field(
        default=False, description="Whether column is part of primary key"
    )
    nullable: bool = Field(default=True, description="Whether column allows NULL")

    @model_validator(mode="after")
    def check_array_item_type(self) -> "ColumnSpec":
        if self.type == "array" and self.item_type is None:
            raise ValueError(f"Array column '{self.name}' requires an item_type")
        if self.item_type == "array":
            raise ValueError(f"Nested arrays are not supported ('{self.name}')")
        return self

    def sql_type(self) -> TypeEngine:
        """SQLAlchemy type for this column."""
        if self.type == "array":
            return ARRAY(_scalar_type(self.item_type, self.item_length))
        return _scalar_type(self.type, self.length)

    def to_column(self) -> Column:
        """Build the SQLAlchemy column."""
        return Column(
            self.name,
            self.sql_type(),
            primary_key=self.primary_key,
            nullable=False if self.primary_key else self.nullable,
        )


def _scalar_type(type_name: Optional[str], length: Optional[int]) -> TypeEngine:
    if type_name == "string":
        return String(length or DEFAULT_STRING_LENGTH)
    if type_name == "text":
        return Text()
    if type_name == "integer":
        return Integer()
    if type_name == "boolean":
        return Boolean()
    if type_name == "date":
        return DateTime(timezone=True)
    if type_name == "jsonb":
        return JSONB()
    raise ValueError(f"Unsupported column type: {type_name}")


class TableDefinition(BaseModel):
    """Static definition of a table and its columns."""

    name: str = Field(..., min_length=1, description="Table name (used verbatim)")
    columns: list[ColumnSpec] = Field(
        default_factory=list, description="Column definitions"
    )
    timestamps: bool = Field(
        default=True,
        description="Add server-populated createdAt/updatedAt columns",
    )
    paranoid: bool = Field(
        default=False,
        description="Add a deletedAt soft-delete marker column",
    )

    @model_validator(mode="after")
    def check_column_names(self) -> "TableDefinition":
        names = [column.name for column in self.columns]
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate columns in '{self.name}': {', '.join(sorted(duplicates))}"
            )
        reserved = GENERATED_COLUMNS.intersection(names)
        if reserved:
            raise ValueError(
                f"Reserved column names in '{self.name}': {', '.join(sorted(reserved))}"
            )
        return self

    @property
    def primary_key(self) -> list[str]:
        """Names of the primary key columns (``id`` when generated)."""
        keys = [column.name for column in self.columns if column.primary_key]
        return keys or ["id"]

    def build_table(self, metadata: MetaData) -> Table:
        """
        Define the SQLAlchemy table for this definition.

        A table without a primary key column gets an auto-generated integer
        ``id`` key, mirroring what the ORM does for plain models.

        Args:
            metadata: MetaData collection the table is attached to

        Returns:
            SQLAlchemy table (not yet created in the database)
        """
        columns = [column.to_column() for column in self.columns]

        if not any(column.primary_key for column in self.columns):
            columns.insert(
                0, Column("id", BigInteger, primary_key=True, autoincrement=True)
            )

        if self.timestamps:
            columns.append(
                Column(
                    CREATED_AT,
                    DateTime(timezone=True),
                    nullable=False,
                    server_default=func.now(),
                )
            )
            columns.append(
                Column(
                    UPDATED_AT,
                    DateTime(timezone=True),
                    nullable=False,
                    server_default=func.now(),
                    onupdate=func.now(),
                )
            )

        if self.paranoid:
            columns.append(Column(DELETED_AT, DateTime(timezone=True), nullable=True))

        return Table(self.name, metadata, *columns)

    def coerce_record(self, record: dict[str, Any]) -> dict[str, Any]:
        """Convert ISO-8601 strings in date columns to datetimes."""
        date_columns = {column.name for column in self.columns if column.type == "date"}
        coerced = dict(record)
        for name in date_columns.intersection(coerced):
            value = coerced[name]
            if isinstance(value, str):
                coerced[name] = datetime.fromisoformat(value)
        return coerced
