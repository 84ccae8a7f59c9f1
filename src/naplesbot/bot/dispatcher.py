"""
Slash command gates and failure handling.

py-cord routes each interaction to its command. This module plugs into that
pipeline at three points:

* :meth:`CommandDispatcher.gate` is a once-per-invocation global check that
  applies the permission gate, then the cooldown gate. A failed gate raises a
  :class:`CommandGateFailure` carrying the ephemeral notice for the user.
* :meth:`CommandDispatcher.handle_error` backs ``on_application_command_error``:
  gate failures get their notice, anything else gets a generic failure notice
  plus an error report.
* :meth:`CommandDispatcher.handle_unknown` backs ``on_unknown_application_command``.
"""

from __future__ import annotations

from typing import Any, Dict

import discord

from naplesbot.bot.cooldowns import CooldownTracker
from naplesbot.bot.error_reporter import ErrorReporter
from naplesbot.bot.permissions import PermissionResolver
from naplesbot.registry.command_registry import CommandRegistry
from naplesbot.ui import embeds
from naplesbot.util.logger import get_logger

logger = get_logger("dispatcher")


class CommandGateFailure(discord.CheckFailure):
    """A gate stopped the command; ``embed`` is what the user sees."""

    def __init__(self, message: str, embed: discord.Embed) -> None:
        super().__init__(message)
        self.embed = embed


class UnregisteredCommand(CommandGateFailure):
    def __init__(self, command_name: str) -> None:
        super().__init__(f"/{command_name} is not registered", embeds.command_not_found_embed(command_name))
        self.command_name = command_name


class InsufficientLevel(CommandGateFailure):
    def __init__(self, command_name: str, required_level: int, user_level: int) -> None:
        super().__init__(
            f"/{command_name} requires level {required_level}, user has {user_level}",
            embeds.permission_denied_embed(
                PermissionResolver.level_name(required_level),
                PermissionResolver.level_name(user_level),
            ),
        )
        self.required_level = required_level
        self.user_level = user_level


class CooldownActive(CommandGateFailure):
    def __init__(self, command_name: str, time_left: float) -> None:
        super().__init__(
            f"/{command_name} is on cooldown for {time_left:.1f}s",
            embeds.cooldown_embed(command_name, time_left),
        )
        self.time_left = time_left


def root_command(command: Any) -> Any:
    """The top-level command of a (possibly nested) subcommand."""
    while getattr(command, "parent", None) is not None:
        command = command.parent
    return command


async def send_ephemeral(interaction: discord.Interaction, embed: discord.Embed) -> None:
    """Reply ephemerally, or follow up if the interaction was already acknowledged."""
    if interaction.response.is_done():
        await interaction.followup.send(embed=embed, ephemeral=True)
    else:
        await interaction.response.send_message(embed=embed, ephemeral=True)


def failure_context(ctx: discord.ApplicationContext) -> Dict[str, Any]:
    command = ctx.command
    return {
        "kind": "command",
        "command": getattr(command, "qualified_name", None) or getattr(command, "name", "?"),
        "user_id": ctx.user.id,
        "guild_id": ctx.guild_id,
        "channel_id": ctx.channel_id,
    }


class CommandDispatcher:
    """Applies gates to application commands and turns failures into notices and reports."""

    def __init__(
        self,
        registry: CommandRegistry,
        permissions: PermissionResolver,
        cooldowns: CooldownTracker,
        error_reporter: ErrorReporter,
    ) -> None:
        self.registry = registry
        self.permissions = permissions
        self.cooldowns = cooldowns
        self.error_reporter = error_reporter

    async def gate(self, ctx: discord.ApplicationContext) -> bool:
        """Global check: permission first, then cooldown. Cooldowns start only for permitted calls."""
        name = root_command(ctx.command).name
        definition = self.registry.get(name)
        if definition is None:
            raise UnregisteredCommand(name)

        user_id = ctx.user.id
        if definition.required_level is not None:
            allowed, user_level = await self.permissions.evaluate(user_id, ctx.guild_id, definition.required_level)
            if not allowed:
                logger.info(
                    "[DISPATCH] Denied /%s for user %s (level %d, requires %d)",
                    name, user_id, user_level, definition.required_level,
                )
                raise InsufficientLevel(name, definition.required_level, user_level)

        if definition.cooldown:
            result = self.cooldowns.check(user_id, name, definition.cooldown)
            if not result.allowed:
                logger.debug("[DISPATCH] /%s on cooldown for user %s (%.1fs left)", name, user_id, result.time_left)
                raise CooldownActive(name, result.time_left)

        return True

    async def handle_error(self, ctx: discord.ApplicationContext, error: discord.DiscordException) -> None:
        if isinstance(error, CommandGateFailure):
            await ctx.respond(embed=error.embed, ephemeral=True)
            return

        original = getattr(error, "original", None) or error
        try:
            await ctx.respond(embed=embeds.command_failed_embed(), ephemeral=True)
        except Exception as send_exc:
            logger.error("[DISPATCH] Could not send failure notice for /%s: %s", ctx.command, send_exc)
        await self.error_reporter.report(original, failure_context(ctx))

    async def handle_unknown(self, interaction: discord.Interaction) -> None:
        name = (interaction.data or {}).get("name", "")
        logger.warning("[DISPATCH] Unknown command /%s from user %s", name, interaction.user.id)
        await send_ephemeral(interaction, embeds.command_not_found_embed(name))

    @staticmethod
    def completed(ctx: discord.ApplicationContext) -> None:
        logger.info("[DISPATCH] /%s completed for user %s", getattr(ctx.command, "qualified_name", ctx.command), ctx.user.id)
