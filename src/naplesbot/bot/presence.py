"""Rotating bot presence.

Cycles through configured activity templates on a fixed interval. Templates
may use ``{users}``, ``{guilds}``, ``{commands}``, ``{version}`` and
``{uptime}``.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

import discord

from naplesbot import __version__
from naplesbot.util.logger import get_logger

logger = get_logger("presence")

ACTIVITY_TYPES = {
    "playing": discord.ActivityType.playing,
    "watching": discord.ActivityType.watching,
    "listening": discord.ActivityType.listening,
    "competing": discord.ActivityType.competing,
}

DEFAULT_ENTRIES: List[Dict[str, str]] = [
    {"name": "/ping | {guilds} servers", "type": "watching"},
    {"name": "{users} users", "type": "watching"},
    {"name": "v{version} | up {uptime}", "type": "playing"},
]


class _SafeDict(dict):
    def __missing__(self, key: str) -> str:
        return "{" + key + "}"


def format_uptime(started_at: datetime, now: Optional[datetime] = None) -> str:
    seconds = int(((now or datetime.now(timezone.utc)) - started_at).total_seconds())
    days, seconds = divmod(max(seconds, 0), 86400)
    hours, seconds = divmod(seconds, 3600)
    minutes = seconds // 60
    if days:
        return f"{days}d {hours}h"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def render_template(template: str, values: Mapping[str, Any]) -> str:
    """Fill placeholders; unknown placeholders are left as written."""
    return template.format_map(_SafeDict(values))


class PresenceRotator:
    """
    Args:
        client: Gateway client whose presence is changed.
        entries: ``[{"name": template, "type": activity}, ...]``; defaults apply when empty.
        interval: Seconds between changes.
        command_count: Callable returning the number of registered commands.
    """

    def __init__(
        self,
        client: discord.Client,
        entries: List[Dict[str, str]],
        interval: float = 60.0,
        command_count: Callable[[], int] = lambda: 0,
    ) -> None:
        self._client = client
        self._entries = entries or DEFAULT_ENTRIES
        self.interval = interval
        self._command_count = command_count
        self._started_at = datetime.now(timezone.utc)
        self._task: asyncio.Task | None = None

    def placeholders(self) -> Dict[str, Any]:
        guilds = self._client.guilds
        return {
            "users": sum(guild.member_count or 0 for guild in guilds),
            "guilds": len(guilds),
            "commands": self._command_count(),
            "version": __version__,
            "uptime": format_uptime(self._started_at),
        }

    def build_activity(self, entry: Mapping[str, str]) -> discord.Activity:
        activity_type = ACTIVITY_TYPES.get(str(entry.get("type", "playing")).lower(), discord.ActivityType.playing)
        return discord.Activity(type=activity_type, name=render_template(entry["name"], self.placeholders()))

    async def _run_loop(self) -> None:
        logger.info("[PRESENCE] Rotating %d presence entries every %.0fs", len(self._entries), self.interval)
        try:
            for entry in itertools.cycle(self._entries):
                try:
                    await self._client.change_presence(activity=self.build_activity(entry))
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    logger.warning("[PRESENCE] Failed to update presence: %s", exc)
                await asyncio.sleep(self.interval)
        except asyncio.CancelledError:
            logger.info("[PRESENCE] Rotation cancelled")
            raise

    def start(self) -> None:
        if self._task and not self._task.done():
            logger.warning("[PRESENCE] Rotation already running")
            return
        self._started_at = datetime.now(timezone.utc)
        self._task = asyncio.create_task(self._run_loop())

    async def shutdown(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
