"""Mirror of every interaction into the guild's ``bot_logs`` channel."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import discord

from naplesbot.configuration.app_configuration import CHANNEL_BOT_LOGS, AppConfig
from naplesbot.ui import embeds
from naplesbot.util.logger import get_logger

logger = get_logger("interaction_log")


def describe_interaction(interaction: discord.Interaction) -> str:
    """Human label: ``/name subcommand`` for commands, the custom id for components."""
    data = interaction.data or {}
    if interaction.type == discord.InteractionType.application_command:
        parts = [f"/{data.get('name', '?')}"]
        parts.extend(option["name"] for option in data.get("options", []) if option.get("type") in (1, 2))
        return " ".join(parts)
    if data.get("custom_id"):
        return str(data["custom_id"])
    return interaction.type.name if interaction.type is not None else "unknown"


def collect_options(options: List[Dict[str, Any]]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for option in options:
        if option.get("type") in (1, 2):
            values.update(collect_options(option.get("options", [])))
        else:
            values[option["name"]] = option.get("value")
    return values


class InteractionLogger:
    """Posts an embed per interaction. Failures are logged and never raised."""

    def __init__(self, client: discord.Client, app_config: AppConfig, default_guild_id: Optional[int] = None) -> None:
        self._client = client
        self._app_config = app_config
        self._default_guild_id = default_guild_id

    async def _resolve_channel(self, guild_id: Optional[int]):
        channel_id = self._app_config.channel_id(CHANNEL_BOT_LOGS, guild_id, self._default_guild_id)
        if channel_id is None:
            return None
        channel = self._client.get_channel(channel_id)
        if channel is None:
            channel = await self._client.fetch_channel(channel_id)
        return channel

    async def log(self, interaction: discord.Interaction) -> None:
        try:
            channel = await self._resolve_channel(interaction.guild_id)
            if channel is None:
                return
            source = interaction.channel
            embed = embeds.interaction_log_embed(
                actor=interaction.user,
                label=describe_interaction(interaction),
                options=collect_options((interaction.data or {}).get("options", [])),
                channel_mention=getattr(source, "mention", "Direct message"),
                guild_name=interaction.guild.name if interaction.guild else "Direct message",
            )
            await channel.send(embed=embed)
        except Exception as exc:
            logger.error("[INTERACTION LOG] Failed to log interaction %s: %s", interaction.id, exc)
