"""
Gateway event subscriptions.

Each :class:`EventDefinition` becomes a py-cord listener registered with
``Client.listen``. There is no unsubscribe: registering the same definition
twice subscribes its handler twice.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, List, Optional

import discord

from naplesbot.datatypes.command_datatypes import EventDefinition
from naplesbot.registry.plugin_loader import PluginLoadError
from naplesbot.util.logger import get_logger

if TYPE_CHECKING:
    from naplesbot.bot.error_reporter import ErrorReporter

logger = get_logger("event_registry")


class EventRegistry:
    """
    Subscribes event handlers on a gateway client.

    Handlers are called as ``execute(client, *event_args)``.

    Handler failures are caught at the listener boundary and handed to the
    error reporter as event errors; they never reach the gateway library.
    """

    def __init__(self, client: discord.Client, error_reporter: Optional["ErrorReporter"] = None) -> None:
        self._client = client
        self._error_reporter = error_reporter
        self._definitions: List[EventDefinition] = []

    def _wrap(self, definition: EventDefinition):
        async def guarded(*args: Any, **kwargs: Any) -> None:
            try:
                await definition.execute(self._client, *args, **kwargs)
            except Exception as exc:
                if self._error_reporter is None:
                    logger.exception("[EVENTS] Handler %s for '%s' failed", definition.label, definition.name)
                    return
                await self._error_reporter.report(
                    exc,
                    {"kind": "event", "event": definition.name, "handler": definition.label},
                )

        guarded.__name__ = guarded.__qualname__ = definition.label
        return guarded

    def register(self, definition: EventDefinition) -> None:
        if not isinstance(definition, EventDefinition):
            raise PluginLoadError("event", f"expected EventDefinition, got {type(definition).__name__}")
        self._client.listen(f"on_{definition.name}", once=definition.once)(self._wrap(definition))
        self._definitions.append(definition)
        logger.info(
            "[EVENTS] Registered %s handler %s for '%s'",
            "one-shot" if definition.once else "persistent",
            definition.label,
            definition.name,
        )

    @property
    def definitions(self) -> List[EventDefinition]:
        return list(self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)
