"""/talk: make the bot post a message."""

import discord
from discord import Option

from naplesbot.datatypes.command_datatypes import CommandDefinition, PermissionLevel
from naplesbot.ui import embeds
from naplesbot.util.logger import get_logger

logger = get_logger("cmd_talk")

# Discord's message length limit
MAX_MESSAGE_LENGTH = 2000


@discord.slash_command(name="talk", description="Send a message as the bot")
async def talk(
    ctx: discord.ApplicationContext,
    text: Option(str, "Message to send", required=True, max_length=MAX_MESSAGE_LENGTH),  # type: ignore
    channel: Option(
        discord.abc.GuildChannel,
        "Channel to send to (defaults to this one)",
        channel_types=[discord.ChannelType.text, discord.ChannelType.news],
        required=False,
        default=None,
    ),  # type: ignore
) -> None:
    target = channel or ctx.channel

    if ctx.guild is not None and isinstance(target, discord.abc.GuildChannel):
        permissions = target.permissions_for(ctx.guild.me)
        if not (permissions.view_channel and permissions.send_messages):
            await ctx.respond(
                embed=embeds.error_embed("Missing permissions", f"I cannot send messages in {target.mention}."),
                ephemeral=True,
            )
            return

    message = await target.send(text)
    logger.info("[TALK] User %s sent a message through the bot in channel %s", ctx.user.id, target.id)
    await ctx.respond(
        embed=embeds.success_embed("Message sent", f"[Jump to message]({message.jump_url})"),
        ephemeral=True,
    )


command = CommandDefinition(
    talk,
    cooldown=5,
    required_level=PermissionLevel.BOT_OWNER,
    is_global=False,
)


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
