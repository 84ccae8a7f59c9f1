"""
Definitions for slash commands and gateway event handlers.

Command and event modules build one of these dataclasses at import time and
hand it to the matching registry from their extension ``setup(bot)``. The
registries validate them once at load time and keep them for the life of the
process.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Awaitable, Callable, Optional, Sequence

import discord

# Guild id sentinel meaning "every guild the bot has joined"
ALL_GUILDS = -1

COMMAND_NAME_PATTERN = re.compile(r"^[-_a-z0-9]{1,32}$")

EventHandler = Callable[..., Awaitable[None]]


class PermissionLevel(IntEnum):
    """Ordered permission ranks. ``BOT_OWNER`` is a separate owner-only gate, not the lowest rank."""

    BOT_OWNER = 0
    USER = 1
    MODERATOR = 2
    ADMIN = 3
    OWNER = 4

    @property
    def display_name(self) -> str:
        return _LEVEL_NAMES[self]

    @classmethod
    def name_of(cls, level: int) -> str:
        """Display name for any integer level; unmapped values read as ``Unknown``."""
        try:
            return cls(level).display_name
        except ValueError:
            return "Unknown"


_LEVEL_NAMES = {
    PermissionLevel.BOT_OWNER: "Bot Owner",
    PermissionLevel.USER: "User",
    PermissionLevel.MODERATOR: "Moderator",
    PermissionLevel.ADMIN: "Administrator",
    PermissionLevel.OWNER: "Owner",
}


@dataclass(frozen=True)
class CommandDefinition:
    """
    A py-cord slash command plus the gates and scope the bot applies to it.

    Attributes:
        command: The :class:`discord.SlashCommand` or
            :class:`discord.SlashCommandGroup`; it carries the name,
            description, options and callback.
        cooldown: Seconds a user must wait between invocations, or None.
        required_level: Minimum :class:`PermissionLevel`, or None for public commands.
        is_global: Deploy to the global scope (default) or per guild.
        guilds_id: Target guilds for guild-scoped commands; ``ALL_GUILDS`` expands
            to every joined guild. Strings are accepted and converted to ints.
    """

    command: discord.ApplicationCommand
    cooldown: Optional[float] = None
    required_level: Optional[int] = None
    is_global: bool = True
    guilds_id: Optional[Sequence[int | str]] = None

    def __post_init__(self) -> None:
        if not isinstance(self.command, (discord.SlashCommand, discord.SlashCommandGroup)):
            raise TypeError(f"Expected a slash command, got {type(self.command).__name__}")
        if getattr(self.command, "parent", None) is not None:
            raise ValueError(f"Command {self.name!r} is a subcommand; register its group instead")
        if not COMMAND_NAME_PATTERN.match(self.name):
            raise ValueError(f"Invalid command name {self.name!r}")
        if self.cooldown is not None and self.cooldown < 0:
            raise ValueError(f"Command {self.name!r} has a negative cooldown")
        if self.required_level is not None and self.required_level not in set(PermissionLevel):
            raise ValueError(f"Command {self.name!r} has unknown required level {self.required_level}")

        if self.guilds_id is not None:
            object.__setattr__(self, "guilds_id", tuple(int(gid) for gid in self.guilds_id))

    @property
    def name(self) -> str:
        return self.command.name

    @property
    def description(self) -> str:
        return self.command.description

    @property
    def targets_all_guilds(self) -> bool:
        return bool(self.guilds_id) and ALL_GUILDS in self.guilds_id


@dataclass(frozen=True, slots=True)
class EventDefinition:
    """A gateway event subscription.

    ``name`` is the py-cord event name without the ``on_`` prefix, e.g.
    ``ready``, ``interaction``, ``guild_join``.
    """

    name: str
    execute: EventHandler
    once: bool = False
    label: str = field(default="")

    def __post_init__(self) -> None:
        if not self.name or self.name.startswith("on_"):
            raise ValueError(f"Invalid event name {self.name!r}")
        if not callable(self.execute):
            raise TypeError(f"Event {self.name!r} has a non-callable handler")
        if not self.label:
            object.__setattr__(self, "label", getattr(self.execute, "__qualname__", self.name))
