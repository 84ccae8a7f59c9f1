"""
Name-indexed store of slash command definitions.

Command plugins call :meth:`CommandRegistry.register` from their extension
``setup``. Registering a name that already exists replaces the earlier
definition.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from naplesbot.datatypes.command_datatypes import CommandDefinition
from naplesbot.registry.plugin_loader import PluginLoadError
from naplesbot.util.logger import get_logger

logger = get_logger("command_registry")


class CommandRegistry:
    """Holds every known :class:`CommandDefinition`, keyed by command name."""

    def __init__(self) -> None:
        self._commands: Dict[str, CommandDefinition] = {}

    def register(self, definition: CommandDefinition) -> None:
        if not isinstance(definition, CommandDefinition):
            raise PluginLoadError("command", f"expected CommandDefinition, got {type(definition).__name__}")
        if definition.name in self._commands:
            logger.warning("[COMMANDS] Replacing existing command '%s'", definition.name)
        self._commands[definition.name] = definition
        logger.info("[COMMANDS] Registered /%s", definition.name)

    def get(self, name: str) -> Optional[CommandDefinition]:
        return self._commands.get(name)

    def names(self) -> List[str]:
        return sorted(self._commands)

    def global_commands(self) -> List[CommandDefinition]:
        return [command for command in self._commands.values() if command.is_global]

    def guild_commands(self) -> List[CommandDefinition]:
        return [command for command in self._commands.values() if not command.is_global]

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[CommandDefinition]:
        return iter(list(self._commands.values()))

    def __len__(self) -> int:
        return len(self._commands)
