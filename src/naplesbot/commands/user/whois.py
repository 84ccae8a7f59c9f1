"""/whois: account and membership details for a user."""

import discord
from discord import Option

from naplesbot.datatypes.command_datatypes import ALL_GUILDS, CommandDefinition
from naplesbot.ui import embeds


@discord.slash_command(name="whois", description="Show information about a user")
async def whois(
    ctx: discord.ApplicationContext,
    user: Option(discord.User, "The user to look up", required=True),  # type: ignore
) -> None:
    await ctx.defer()

    member = user if isinstance(user, discord.Member) else None
    if member is None and ctx.guild is not None:
        member = ctx.guild.get_member(user.id)
        if member is None:
            try:
                member = await ctx.guild.fetch_member(user.id)
            except discord.NotFound:
                member = None

    await ctx.edit(embed=embeds.whois_embed(user, member))


command = CommandDefinition(whois, cooldown=10, is_global=False, guilds_id=[ALL_GUILDS])


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
