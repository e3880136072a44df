"""Database configuration model."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from sqlalchemy.engine.url import URL, make_url

SUPPORTED_DIALECTS = {"cockroachdb", "postgresql"}


class DatabaseConfig(BaseModel):
    """Configuration for the CockroachDB connection and pooling."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "examples": [
                {
                    "host": "localhost",
                    "port": 26257,
                    "database": "fluid_prefsdb",
                    "user": "maxroach",
                    "password": "",
                    "dialect": "cockroachdb",
                    "driver": "asyncpg",
                }
            ]
        },
    )

    host: str = Field(default="localhost", description="Database server host")
    port: int = Field(
        default=26257,
        ge=1,
        le=65535,
        description="Database server port",
    )
    database: str = Field(default="fluid_prefsdb", description="Database name")
    user: str = Field(default="maxroach", description="User with admin access")
    password: str = Field(default="", description="User's password")
    dialect: str = Field(
        default="cockroachdb",
        description="SQLAlchemy dialect (cockroachdb or postgresql)",
    )
    driver: str = Field(default="asyncpg", description="Async DBAPI driver")
    pool_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Connection pool size",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Maximum overflow connections",
    )
    pool_timeout: int = Field(
        default=30,
        ge=1,
        le=300,
        description="Pool checkout timeout in seconds",
    )
    echo_sql: bool = Field(
        default=False,
        description="Echo SQL statements to stdout",
    )

    @field_validator("dialect")
    @classmethod
    def validate_dialect(cls, v: str) -> str:
        """Only PostgreSQL wire-compatible dialects are supported."""
        if v not in SUPPORTED_DIALECTS:
            raise ValueError(
                f"Unsupported database dialect: {v}. "
                f"Supported: {', '.join(sorted(SUPPORTED_DIALECTS))}"
            )
        return v

    @field_validator("driver")
    @classmethod
    def validate_driver(cls, v: str) -> str:
        """Ensure an async driver is specified."""
        if not v:
            raise ValueError(
                "Async driver required. Examples: "
                "cockroachdb+asyncpg://, postgresql+asyncpg://"
            )
        return v

    @classmethod
    def from_url(cls, url: str, **overrides) -> "DatabaseConfig":
        """
        Build a configuration from a SQLAlchemy database URL.

        Args:
            url: URL such as cockroachdb+asyncpg://maxroach@localhost:26257/db
            **overrides: Pool or echo settings to apply on top of the URL

        Returns:
            Database configuration

        Raises:
            ValueError: If the URL cannot be parsed
        """
        try:
            parsed = make_url(url)
        except Exception as e:
            raise ValueError(f"Invalid database URL: {e}") from e

        parts = parsed.drivername.split("+")
        values = {
            "dialect": parts[0],
            "driver": parts[1] if len(parts) > 1 else "",
        }
        if parsed.host:
            values["host"] = parsed.host
        if parsed.port:
            values["port"] = parsed.port
        if parsed.database:
            values["database"] = parsed.database
        if parsed.username:
            values["user"] = parsed.username
        if parsed.password is not None:
            values["password"] = parsed.password
        values.update(overrides)
        return cls(**values)

    @classmethod
    def from_env(cls, prefix: str = "COCKROACH_") -> "DatabaseConfig":
        """
        Build a configuration from environment variables.

        A ``.env`` file is loaded first. ``DATABASE_URL`` wins when set,
        otherwise ``<prefix>HOST``, ``<prefix>PORT``, ``<prefix>DATABASE``,
        ``<prefix>USER`` and ``<prefix>PASSWORD`` override the defaults.
        """
        load_dotenv()

        database_url = os.getenv("DATABASE_URL")
        if database_url:
            return cls.from_url(database_url)

        values = {}
        for field_name in ("host", "port", "database", "user", "password"):
            value: Optional[str] = os.getenv(f"{prefix}{field_name.upper()}")
            if value is not None:
                values[field_name] = value
        return cls(**values)

    @property
    def drivername(self) -> str:
        """SQLAlchemy driver name, e.g. ``cockroachdb+asyncpg``."""
        return f"{self.dialect}+{self.driver}"

    @property
    def url(self) -> URL:
        """SQLAlchemy URL for this configuration."""
        return URL.create(
            self.drivername,
            username=self.user,
            password=self.password or None,
            host=self.host,
            port=self.port,
            database=self.database,
        )

    @property
    def safe_url(self) -> str:
        """Connection URL with the password masked."""
        return self.url.render_as_string(hide_password=True)
