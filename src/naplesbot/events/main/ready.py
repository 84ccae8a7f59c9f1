"""Startup work once the gateway session is ready."""

from naplesbot.datatypes.command_datatypes import EventDefinition
from naplesbot.util.logger import get_logger

logger = get_logger("event_ready")


async def execute(bot) -> None:
    logger.info("[READY] Logged in as %s (ID: %s)", bot.user, bot.user.id if bot.user else "?")
    if bot.user is not None and bot.user.id != bot.settings.client_id:
        logger.warning(
            "[READY] DISCORD_CLIENT_ID %s does not match the logged-in application %s", bot.settings.client_id, bot.user.id
        )
    logger.info("[READY] Serving %d guild(s) with %d command(s)", len(bot.guilds), len(bot.command_registry))
    logger.info("[READY] Commands: %s", ", ".join(f"/{name}" for name in bot.command_registry.names()) or "none")
    for guild in bot.guilds:
        logger.info("[READY]   - %s (%s), %s members", guild.name, guild.id, guild.member_count)
    if bot.database is not None:
        logger.info("[READY] Database pool: %s", bot.database.pool_stats())

    bot.cooldowns.start()
    bot.presence.start()

    plan = await bot.deployment.deploy_all()
    logger.info(
        "[READY] Deployed %d global command(s) and guild commands to %d guild(s); %d skipped",
        len(plan.global_commands), len(plan.guild_commands), len(plan.skipped),
    )


event = EventDefinition(name="ready", execute=execute, once=True)


def setup(bot) -> None:
    bot.event_registry.register(event)
