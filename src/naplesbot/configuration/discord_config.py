"""Discord credentials and deployment targets read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from naplesbot.configuration.environment import ConfigurationError, require_variables

REQUIRED_DISCORD_VARIABLES = ("DISCORD_TOKEN", "DISCORD_CLIENT_ID")


@dataclass(frozen=True, slots=True)
class DiscordSettings:
    """Gateway token, application id and the optional fallback guild."""

    token: str
    client_id: int
    default_guild_id: int | None = None

    def __repr__(self) -> str:
        return f"DiscordSettings(client_id={self.client_id}, default_guild_id={self.default_guild_id})"


def _parse_snowflake(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a numeric Discord id, got {value!r}") from exc


def load_discord_settings() -> DiscordSettings:
    """Build :class:`DiscordSettings` from ``os.environ``.

    Raises:
        ConfigurationError: If a required variable is missing or an id is not numeric.
    """
    values = require_variables(REQUIRED_DISCORD_VARIABLES, "Discord")
    default_guild = os.getenv("DEFAULT_GUILD_ID", "").strip()
    return DiscordSettings(
        token=values["DISCORD_TOKEN"],
        client_id=_parse_snowflake("DISCORD_CLIENT_ID", values["DISCORD_CLIENT_ID"]),
        default_guild_id=_parse_snowflake("DEFAULT_GUILD_ID", default_guild) if default_guild else None,
    )
