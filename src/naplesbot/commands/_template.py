"""
Starting point for a new command. Copy this file without the leading
underscore; files starting with ``_`` are never loaded.
"""

import discord
from discord import Option

from naplesbot.datatypes.command_datatypes import CommandDefinition, PermissionLevel


@discord.slash_command(name="template", description="Example command")
async def template(
    ctx: discord.ApplicationContext,
    text: Option(str, "Something to echo back", required=True),  # type: ignore
) -> None:
    await ctx.respond(f"Hello {ctx.user.mention}, you said: {text}", ephemeral=True)


command = CommandDefinition(template, cooldown=5, required_level=PermissionLevel.USER)


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
