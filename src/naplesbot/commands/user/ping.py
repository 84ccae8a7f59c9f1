"""/ping: round-trip and gateway latency."""

import math
import time

import discord

from naplesbot.datatypes.command_datatypes import CommandDefinition
from naplesbot.ui import embeds


@discord.slash_command(name="ping", description="Check the bot's latency")
async def ping(ctx: discord.ApplicationContext) -> None:
    started = time.perf_counter()
    await ctx.respond("🏓 Pinging...")
    roundtrip_ms = (time.perf_counter() - started) * 1000

    # latency is NaN until the first heartbeat is acknowledged
    gateway_ms = ctx.bot.latency * 1000 if math.isfinite(ctx.bot.latency) else 0.0
    await ctx.edit(content=None, embed=embeds.ping_embed(roundtrip_ms, gateway_ms))


command = CommandDefinition(ping, cooldown=3, is_global=True)


def setup(bot: discord.Bot) -> None:
    bot.command_registry.register(command)
