"""/shutdown: stop the bot after an explicit confirmation."""

import asyncio

import discord
from discord import Option

from naplesbot.datatypes.command_datatypes import CommandDefinition, PermissionLevel
from naplesbot.ui import embeds
from naplesbot.util.logger import get_logger

logger = get_logger("cmd_shutdown")

CONFIRMATION_WORD = "CONFIRM"
SHUTDOWN_DELAY_SECONDS = 3.0


@discord.slash_command(name="shutdown", description="Shut the bot down")
async def shutdown(
    ctx: discord.ApplicationContext,
    confirm: Option(str, f"Type {CONFIRMATION_WORD} to confirm", required=True),  # type: ignore
) -> None:
    if confirm != CONFIRMATION_WORD:
        await ctx.respond(
            embed=embeds.warning_embed(
                "Shutdown not confirmed",
                f"Type `{CONFIRMATION_WORD}` in the `confirm` option to shut the bot down.",
            ),
            ephemeral=True,
        )
        return

    await ctx.respond(
        embed=embeds.warning_embed("Shutting down", f"The bot will go offline in {SHUTDOWN_DELAY_SECONDS:.0f} seconds."),
        ephemeral=True,
    )
    logger.warning("[SHUTDOWN] Shutdown requested by %s (%s)", ctx.user, ctx.user.id)

    await asyncio.sleep(SHUTDOWN_DELAY_SECONDS)
    ctx.bot.exit_code = 0
    await ctx.bot.close()


command = CommandDefinition(
    shutdown,
    cooldown=60,
    required_level=PermissionLevel.BOT_OWNER,
    is_global=True,
)


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
