"""
SQL data source configuration models.
"""

from typing import Any

from pydantic import BaseModel, Field, SecretStr, model_validator
from sqlalchemy.engine import URL, make_url


class DatabaseConfig(BaseModel):
    """
    Connection settings for a SQLAlchemy async engine.

    Either ``url`` or ``drivername`` (plus host/credentials) must be set.

    Example (YAML):
        database:
          drivername: mysql+aiomysql
          host: db1
          username: exporter
          password: "{{ MYSQL_PASSWORD }}"
          database: information_schema
    """

    url: SecretStr | None = Field(default=None, description="Full database URL")

    drivername: str | None = Field(default=None, description="e.g. mysql+aiomysql")
    host: str | None = Field(default=None, description="Database host")
    port: int | None = Field(default=None, description="Database port")
    username: str | None = Field(default=None, description="Login user")
    password: SecretStr | None = Field(default=None, description="Login password")
    database: str | None = Field(default=None, description="Database / schema name")
    query: dict[str, str] = Field(
        default_factory=dict,
        description="Extra URL query parameters",
    )

    # Pool settings
    pool_size: int = Field(default=5, ge=1, description="Pooled connections kept open")
    max_overflow: int = Field(default=10, ge=0, description="Connections allowed beyond pool_size")
    pool_recycle: int = Field(default=-1, description="Recycle connections after N seconds (-1 = never)")
    pool_pre_ping: bool = Field(default=True, description="Test connections on checkout")

    echo: bool = Field(default=False, description="Log all SQL statements")
    connect_args: dict[str, Any] = Field(
        default_factory=dict,
        description="Passed through to the DBAPI connect() call",
    )

    @model_validator(mode="after")
    def validate_target(self) -> "DatabaseConfig":
        if self.url is None and not self.drivername:
            raise ValueError("either 'url' or 'drivername' must be set")
        return self

    def to_url(self) -> URL:
        """Build the SQLAlchemy URL."""
        if self.url is not None:
            return make_url(self.url.get_secret_value())

        return URL.create(
            drivername=self.drivername or "",
            username=self.username,
            password=self.password.get_secret_value() if self.password else None,
            host=self.host,
            port=self.port,
            database=self.database,
            query=self.query,
        )

    def to_engine_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``create_async_engine``."""
        kwargs: dict[str, Any] = {
            "echo": self.echo,
            "pool_pre_ping": self.pool_pre_ping,
            "pool_recycle": self.pool_recycle,
        }

        # SQLite uses a non-queue pool that rejects sizing arguments
        if not self.to_url().get_backend_name().startswith("sqlite"):
            kwargs["pool_size"] = self.pool_size
            kwargs["max_overflow"] = self.max_overflow

        if self.connect_args:
            kwargs["connect_args"] = dict(self.connect_args)

        return kwargs
