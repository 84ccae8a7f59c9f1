"""
Gateway client.

:class:`NaplesBot` is a py-cord :class:`discord.Bot` that owns the bot's
services. py-cord routes slash commands; the dispatcher's gate runs as a
once-per-invocation global check and command failures arrive through
``on_application_command_error``.
"""

from __future__ import annotations

from typing import Any, Optional

import discord

from naplesbot.bot.cooldowns import CooldownTracker
from naplesbot.bot.deployment import DeploymentManager
from naplesbot.bot.dispatcher import CommandDispatcher
from naplesbot.bot.error_reporter import ChannelErrorNotifier, ErrorReporter
from naplesbot.bot.interaction_log import InteractionLogger
from naplesbot.bot.permissions import PermissionResolver
from naplesbot.bot.presence import PresenceRotator
from naplesbot.configuration.app_configuration import AppConfig
from naplesbot.configuration.discord_config import DiscordSettings
from naplesbot.registry.command_registry import CommandRegistry
from naplesbot.registry.event_registry import EventRegistry
from naplesbot.util.logger import get_logger

logger = get_logger("client")


def build_intents() -> discord.Intents:
    """Intents needed for guild, member and interaction events."""
    intents = discord.Intents.default()
    intents.guilds = True
    intents.members = True
    return intents


class NaplesBot(discord.Bot):
    """
    Discord bot wired with the command registry, dispatcher and friends.

    Commands are pushed by :class:`DeploymentManager` once the gateway is
    ready, so py-cord's own sync on connect is disabled.

    Parameters
    ----------
    app_config:
        Static YAML configuration (owners, role tables, log channels, presence).
    settings:
        Discord credentials and the default guild.
    database:
        Optional database manager made available to commands as ``bot.database``.
    """

    def __init__(
        self,
        app_config: AppConfig,
        settings: DiscordSettings,
        database: Any = None,
        intents: Optional[discord.Intents] = None,
    ) -> None:
        super().__init__(intents=intents or build_intents(), auto_sync_commands=False)
        self.app_config = app_config
        self.settings = settings
        self.database = database
        self.exit_code = 0

        self.error_reporter = ErrorReporter([ChannelErrorNotifier(self, app_config, settings.default_guild_id)])
        self.command_registry = CommandRegistry()
        self.event_registry = EventRegistry(self, self.error_reporter)
        self.permissions = PermissionResolver(self, app_config.bot_owners, app_config.permission_levels)
        self.cooldowns = CooldownTracker(app_config.cooldown_sweep_interval, app_config.cooldown_stale_after)
        self.dispatcher = CommandDispatcher(
            self.command_registry, self.permissions, self.cooldowns, self.error_reporter
        )
        self.deployment = DeploymentManager(self, self.command_registry, settings.default_guild_id)
        self.presence = PresenceRotator(
            self,
            app_config.presence_entries,
            app_config.presence_interval,
            command_count=lambda: len(self.command_registry),
        )
        self.interaction_logger = InteractionLogger(self, app_config, settings.default_guild_id)

        self.add_check(self.dispatcher.gate, call_once=True)

    # --------------------------
    # Command pipeline hooks
    # --------------------------
    async def on_application_command_error(
        self, context: discord.ApplicationContext, exception: discord.DiscordException
    ) -> None:
        await self.dispatcher.handle_error(context, exception)

    async def on_unknown_application_command(self, interaction: discord.Interaction) -> None:
        await self.dispatcher.handle_unknown(interaction)

    async def on_application_command_completion(self, context: discord.ApplicationContext) -> None:
        self.dispatcher.completed(context)

    # --------------------------
    # Lifecycle
    # --------------------------
    async def close(self) -> None:
        await self.presence.shutdown()
        await self.cooldowns.shutdown()
        await super().close()
        logger.info("[CLIENT] Gateway connection closed")
