from naplesbot.datatypes.command_datatypes import EventDefinition
from naplesbot.util.logger import get_logger

logger = get_logger("event_guild_remove")


async def execute(bot, guild) -> None:
    logger.info("[GUILD] Removed from %s (%s)", guild.name, guild.id)


event = EventDefinition(name="guild_remove", execute=execute)


def setup(bot) -> None:
    bot.event_registry.register(event)
