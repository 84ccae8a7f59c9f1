"""/admin-deploy: push guild-scoped commands again without restarting."""

import discord

from naplesbot.datatypes.command_datatypes import CommandDefinition, PermissionLevel
from naplesbot.ui import embeds
from naplesbot.util.logger import get_logger

logger = get_logger("cmd_admin_deploy")

admin_deploy = discord.SlashCommandGroup("admin-deploy", "Redeploy guild commands")


async def _report_failure(ctx: discord.ApplicationContext, scope: str, exc: discord.HTTPException) -> None:
    logger.error("[DEPLOY] Manual redeploy (%s) failed: %s", scope, exc)
    await ctx.edit(embed=embeds.error_embed("Deploy failed", "Discord rejected the command update. Check the logs."))


@admin_deploy.command(name="this-guild", description="Redeploy commands for this server")
async def this_guild(ctx: discord.ApplicationContext) -> None:
    await ctx.defer(ephemeral=True)
    if ctx.guild is None:
        await ctx.edit(embed=embeds.error_embed("Server only", "Use this subcommand inside a server."))
        return

    try:
        pushed = await ctx.bot.deployment.redeploy_guild(ctx.guild.id)
    except discord.HTTPException as exc:
        await _report_failure(ctx, "this-guild", exc)
        return
    await ctx.edit(embed=embeds.deploy_result_embed("this guild", [ctx.guild.id] if pushed else []))


@admin_deploy.command(name="all-guilds", description="Redeploy commands for every server")
async def all_guilds(ctx: discord.ApplicationContext) -> None:
    await ctx.defer(ephemeral=True)
    try:
        deployed = await ctx.bot.deployment.redeploy_all_guilds()
    except discord.HTTPException as exc:
        await _report_failure(ctx, "all-guilds", exc)
        return
    await ctx.edit(embed=embeds.deploy_result_embed("all guilds", deployed))


command = CommandDefinition(
    admin_deploy,
    cooldown=30,
    required_level=PermissionLevel.BOT_OWNER,
    is_global=True,
)


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
