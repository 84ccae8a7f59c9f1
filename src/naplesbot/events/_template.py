"""
Starting point for a new event handler. Copy this file without the leading
underscore; files starting with ``_`` are never loaded.
"""

from naplesbot.datatypes.command_datatypes import EventDefinition
from naplesbot.util.logger import get_logger

logger = get_logger("event_template")


async def execute(bot, message) -> None:
    logger.debug("Message %s seen by %s", message.id, bot.user)


event = EventDefinition(name="message", execute=execute)


def setup(bot) -> None:
    bot.event_registry.register(event)
