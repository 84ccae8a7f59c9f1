"""Deploy guild commands as soon as the bot joins a server."""

from naplesbot.datatypes.command_datatypes import EventDefinition
from naplesbot.util.logger import get_logger

logger = get_logger("event_guild_join")


async def execute(bot, guild) -> None:
    logger.info("[GUILD] Joined %s (%s) with %s members", guild.name, guild.id, guild.member_count)
    pushed = await bot.deployment.redeploy_guild(guild.id)
    logger.info("[GUILD] Deployed %d command(s) to new guild %s", pushed, guild.id)


event = EventDefinition(name="guild_join", execute=execute)


def setup(bot) -> None:
    bot.event_registry.register(event)
