"""Operation result models."""

from typing import Any

from pydantic import BaseModel, Field

from cockroach_ops.utils.serialization import dumps


class LoadResult(BaseModel):
    """Result of a bulk load into one table."""

    table: str = Field(..., description="Table name")
    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Inserted rows as returned by the database"
    )
    skipped: bool = Field(
        default=False,
        description="Whether the table was unknown and nothing was loaded",
    )

    @property
    def row_count(self) -> int:
        """Number of rows inserted."""
        return len(self.rows)

    def to_json(self) -> str:
        """Render as indented JSON, timestamps in ISO format."""
        return dumps(self.model_dump(), indent=True)


class UpdateResult(BaseModel):
    """Result of an update by filter."""

    table: str = Field(..., description="Table name")
    affected_count: int = Field(default=0, ge=0, description="Number of rows changed")
    rows: list[dict[str, Any]] = Field(
        default_factory=list, description="Changed rows after the update"
    )

    def to_json(self) -> str:
        """Render as indented JSON, timestamps in ISO format."""
        return dumps(self.model_dump(), indent=True)


class DeleteResult(BaseModel):
    """Result of a delete by key filter."""

    table: str = Field(..., description="Table name")
    deleted_count: int = Field(default=0, ge=0, description="Number of rows deleted")
    hard: bool = Field(
        default=True, description="Whether rows were removed rather than soft-deleted"
    )

    def to_json(self) -> str:
        """Render as indented JSON."""
        return dumps(self.model_dump(), indent=True)
