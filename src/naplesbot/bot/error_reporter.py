"""
Structured failure reports.

Every report is first written as a log record; registered notifiers (the
error-logs channel, for example) receive it afterwards. A notifier that fails
is logged and never masks the original error.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Protocol

import discord

from naplesbot.configuration.app_configuration import CHANNEL_ERROR_LOGS, AppConfig
from naplesbot.ui import embeds
from naplesbot.util.logger import get_logger

logger = get_logger("error_reporter")

# Keep stack excerpts within Discord's 1024-character embed field limit
STACK_EXCERPT_LIMIT = 1000


@dataclass(slots=True)
class ErrorReport:
    error_type: str
    message: str
    file: Optional[str]
    line: Optional[int]
    stack: str
    context: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_exception(cls, error: BaseException, context: Optional[Mapping[str, Any]] = None) -> "ErrorReport":
        frames = traceback.extract_tb(error.__traceback__)
        last = frames[-1] if frames else None
        stack = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        return cls(
            error_type=type(error).__name__,
            message=str(error),
            file=last.filename if last else None,
            line=last.lineno if last else None,
            stack=stack,
            context=dict(context or {}),
        )

    @property
    def location(self) -> str:
        if self.file is None:
            return "unknown"
        return f"{self.file}:{self.line}"

    @property
    def stack_excerpt(self) -> str:
        if len(self.stack) <= STACK_EXCERPT_LIMIT:
            return self.stack
        return "..." + self.stack[-STACK_EXCERPT_LIMIT:]


class ErrorNotifier(Protocol):
    async def notify(self, report: ErrorReport) -> None: ...


class ErrorReporter:
    """Logs failure reports and fans them out to notifiers."""

    def __init__(self, notifiers: Optional[List[ErrorNotifier]] = None) -> None:
        self._notifiers: List[ErrorNotifier] = list(notifiers or [])

    async def report(self, error: BaseException, context: Optional[Mapping[str, Any]] = None) -> ErrorReport:
        report = ErrorReport.from_exception(error, context)
        logger.error(
            "[ERROR REPORT] %s: %s at %s context=%s",
            report.error_type,
            report.message,
            report.location,
            report.context,
            exc_info=(type(error), error, error.__traceback__),
        )
        for notifier in self._notifiers:
            try:
                await notifier.notify(report)
            except Exception as exc:
                logger.warning("[ERROR REPORT] Notifier %s failed: %s", type(notifier).__name__, exc)
        return report


class ChannelErrorNotifier:
    """Posts reports to the ``error_logs`` channel of the failing guild, or the default one."""

    def __init__(self, client: discord.Client, app_config: AppConfig, default_guild_id: Optional[int] = None) -> None:
        self._client = client
        self._app_config = app_config
        self._default_guild_id = default_guild_id

    async def notify(self, report: ErrorReport) -> None:
        guild_id = report.context.get("guild_id")
        channel_id = self._app_config.channel_id(CHANNEL_ERROR_LOGS, guild_id, self._default_guild_id)
        if channel_id is None:
            logger.warning("[ERROR REPORT] No error_logs channel configured; report kept in the log only")
            return

        channel = self._client.get_channel(channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(channel_id)
        await channel.send(embed=embeds.error_report_embed(report))
