"""Record every interaction in the guild's bot-logs channel."""

from naplesbot.datatypes.command_datatypes import EventDefinition


async def execute(bot, interaction) -> None:
    await bot.interaction_logger.log(interaction)


event = EventDefinition(name="interaction", execute=execute, label="log_interactions")


def setup(bot) -> None:
    bot.event_registry.register(event)
