from __future__ import annotations
from pathlib import Path
import fcntl
from typing import Any, Dict, List
import yaml

from naplesbot.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

CHANNEL_ERROR_LOGS = "error_logs"
CHANNEL_BOT_LOGS = "bot_logs"


def _to_snowflake(value: Any) -> int | None:
    """Coerce a YAML scalar into a Discord snowflake, or None if it is not numeric."""
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


class AppConfig:
    """File-lock based accessor around the YAML-based bot configuration.

    The class caches the contents of ``./config/app_config.yml`` and exposes
    typed views over it: bot owners, per-guild permission role tables, log
    channels, presence rotation and cooldown housekeeping. Discord ids may be
    written as strings or integers; placeholders that are not numeric are
    ignored.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping."""
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def bot_owners(self) -> frozenset[int]:
        """User ids that hold the top permission level in every guild."""
        raw = self._data.get("bot_owners") or []
        if not isinstance(raw, list):
            return frozenset()
        return frozenset(uid for uid in map(_to_snowflake, raw) if uid is not None)

    @property
    def permission_levels(self) -> Dict[int, Dict[int, List[int]]]:
        """Return ``{guild_id: {level: [role_id, ...]}}``.

        Levels outside 1-4 are dropped: level 0 is reserved for bot owners and
        can never be granted through a role.
        """
        tables: Dict[int, Dict[int, List[int]]] = {}
        for guild_key, levels in self._section("permission_levels").items():
            guild_id = _to_snowflake(guild_key)
            if guild_id is None or not isinstance(levels, dict):
                continue
            table: Dict[int, List[int]] = {}
            for level_key, role_ids in levels.items():
                level = _to_snowflake(level_key)
                if level is None or not 1 <= level <= 4:
                    logger.warning("[APP CONFIGURATION] Ignoring permission level %r for guild %s", level_key, guild_id)
                    continue
                roles = [rid for rid in map(_to_snowflake, role_ids or []) if rid is not None]
                table[level] = roles
            tables[guild_id] = table
        return tables

    def _guild_channels(self, guild_id: int | None) -> Dict[str, Any]:
        if guild_id is None:
            return {}
        for guild_key, channels in self._section("channels").items():
            if _to_snowflake(guild_key) == guild_id and isinstance(channels, dict):
                return channels
        return {}

    def channel_id(self, channel_key: str, guild_id: int | None, fallback_guild_id: int | None = None) -> int | None:
        """Look up a configured log channel for ``guild_id``.

        Lookup order: the guild's own entry, then ``fallback_guild_id``'s entry
        (the default guild), then the ``default`` entry under ``channels``.
        DMs and event failures carry no guild and go straight to the fallbacks.
        """
        default = self._section("channels").get("default")
        candidates = (
            self._guild_channels(guild_id),
            self._guild_channels(fallback_guild_id),
            default if isinstance(default, dict) else {},
        )
        for channels in candidates:
            channel_id = _to_snowflake(channels.get(channel_key))
            if channel_id is not None:
                return channel_id
        return None

    @property
    def presence_interval(self) -> float:
        """Seconds between presence rotations. Default is 60 seconds."""
        return float(self._section("presence").get("interval_seconds", 60.0))

    @property
    def presence_entries(self) -> List[Dict[str, str]]:
        """Configured presence templates as ``{"name": ..., "type": ...}`` dicts."""
        entries = self._section("presence").get("entries") or []
        return [entry for entry in entries if isinstance(entry, dict) and entry.get("name")]

    @property
    def cooldown_sweep_interval(self) -> float:
        """Seconds between cooldown sweeps. Default is 600 seconds (10 minutes)."""
        return float(self._section("cooldowns").get("sweep_interval_seconds", 600.0))

    @property
    def cooldown_stale_after(self) -> float:
        """Age after which any cooldown entry is dropped. Default is one hour."""
        return float(self._section("cooldowns").get("stale_after_seconds", 3600.0))

    @property
    def database_connection_limit(self) -> int:
        return int(self._section("database").get("connection_limit", 10))

    @property
    def database_charset(self) -> str:
        return str(self._section("database").get("charset", "utf8mb4"))


def load_app_config(config_path: Path = CONFIG_PATH) -> AppConfig:
    """Build an :class:`AppConfig` for ``config_path``."""
    return AppConfig(config_path)
