"""MySQL connection settings read from the environment."""

from __future__ import annotations

from dataclasses import dataclass

from naplesbot.configuration.environment import ConfigurationError, require_variables

REQUIRED_DATABASE_VARIABLES = (
    "DATABASE_HOST",
    "DATABASE_PORT",
    "DATABASE_USER",
    "DATABASE_PASSWORD",
    "DATABASE_NAME",
)


@dataclass(frozen=True, slots=True)
class DatabaseSettings:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_limit: int = 10
    charset: str = "utf8mb4"

    def validate(self) -> None:
        """Check the values a connection pool cannot work without."""
        for field_name in ("host", "user", "database"):
            if not getattr(self, field_name):
                raise ConfigurationError(f"[DATABASE] Missing required field: {field_name}")
        if not 1 <= self.port <= 65535:
            raise ConfigurationError("[DATABASE] Invalid port (must be between 1 and 65535)")
        if self.connection_limit < 1:
            raise ConfigurationError("[DATABASE] connection_limit must be at least 1")

    def __repr__(self) -> str:
        return (
            f"DatabaseSettings(host={self.host!r}, port={self.port}, user={self.user!r}, "
            f"database={self.database!r}, connection_limit={self.connection_limit})"
        )


def load_database_settings(connection_limit: int = 10, charset: str = "utf8mb4") -> DatabaseSettings:
    """Build :class:`DatabaseSettings` from ``os.environ``.

    Pool sizing comes from the YAML configuration and is passed in by the caller.
    """
    values = require_variables(REQUIRED_DATABASE_VARIABLES, "database")
    try:
        port = int(values["DATABASE_PORT"])
    except ValueError as exc:
        raise ConfigurationError(f"DATABASE_PORT must be an integer, got {values['DATABASE_PORT']!r}") from exc
    return DatabaseSettings(
        host=values["DATABASE_HOST"],
        port=port,
        user=values["DATABASE_USER"],
        password=values["DATABASE_PASSWORD"],
        database=values["DATABASE_NAME"],
        connection_limit=connection_limit,
        charset=charset,
    )
