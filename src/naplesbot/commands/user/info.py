"""/info: summary of the current server."""

import discord

from naplesbot.datatypes.command_datatypes import ALL_GUILDS, CommandDefinition, PermissionLevel
from naplesbot.ui import embeds


@discord.slash_command(name="info", description="Show information about this server")
async def info(ctx: discord.ApplicationContext) -> None:
    if ctx.guild is None:
        await ctx.respond(embed=embeds.warning_embed("Server only", "This command can only be used in a server."), ephemeral=True)
        return

    await ctx.respond(embed=embeds.server_info_embed(ctx.guild))


command = CommandDefinition(
    info,
    cooldown=10,
    required_level=PermissionLevel.USER,
    is_global=False,
    guilds_id=[ALL_GUILDS],
)


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
