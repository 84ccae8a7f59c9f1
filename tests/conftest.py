"""
Pytest configuration and shared fakes for naplesbot tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import discord  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeResponse:
    """Stand-in for ``discord.InteractionResponse`` that records what was sent."""

    def __init__(self) -> None:
        self._done = False
        self.sent = []
        self.deferred = None

    def is_done(self) -> bool:
        return self._done

    async def send_message(self, content=None, *, embed=None, ephemeral=False):
        self._done = True
        self.sent.append({"content": content, "embed": embed, "ephemeral": ephemeral})

    async def defer(self, *, ephemeral=False):
        self._done = True
        self.deferred = {"ephemeral": ephemeral}


def make_interaction(
    name: str = "ping",
    *,
    user_id: int = 42,
    guild_id=None,
    guild=None,
    options=None,
    interaction_type=discord.InteractionType.application_command,
    channel=None,
):
    """Build an application command interaction fake."""
    data = {"type": 1, "name": name, "options": options or []}
    return SimpleNamespace(
        id=555,
        type=interaction_type,
        data=data,
        user=SimpleNamespace(id=user_id, mention=f"<@{user_id}>"),
        guild_id=guild_id,
        guild=guild,
        channel_id=getattr(channel, "id", 777),
        channel=channel or SimpleNamespace(id=777, mention="<#777>", send=AsyncMock()),
        response=FakeResponse(),
        followup=SimpleNamespace(send=AsyncMock()),
        edit_original_response=AsyncMock(),
    )


def make_context(command=None, *, bot=None, interaction=None, **interaction_kwargs):
    """Build a ``discord.ApplicationContext`` fake around :func:`make_interaction`.

    ``respond`` answers the interaction, or follows up once it is acknowledged,
    like py-cord's ``Interaction.respond``.
    """
    name = getattr(command, "name", "ping")
    interaction = interaction or make_interaction(name, **interaction_kwargs)

    async def respond(content=None, *, embed=None, ephemeral=False):
        if interaction.response.is_done():
            return await interaction.followup.send(content=content, embed=embed, ephemeral=ephemeral)
        return await interaction.response.send_message(content, embed=embed, ephemeral=ephemeral)

    return SimpleNamespace(
        bot=bot,
        command=command or SimpleNamespace(name=name, qualified_name=name, parent=None),
        interaction=interaction,
        user=interaction.user,
        author=interaction.user,
        guild=interaction.guild,
        guild_id=interaction.guild_id,
        channel=interaction.channel,
        channel_id=interaction.channel_id,
        respond=respond,
        defer=interaction.response.defer,
        edit=interaction.edit_original_response,
    )


def embeds_sent(interaction):
    """Every embed sent through the response or a follow-up, in order."""
    embeds = [entry["embed"] for entry in interaction.response.sent if entry["embed"] is not None]
    embeds.extend(call.kwargs["embed"] for call in interaction.followup.send.await_args_list if "embed" in call.kwargs)
    return embeds


def embed_text(embed: discord.Embed) -> str:
    parts = [embed.title or "", embed.description or ""]
    parts.extend(f"{field.name} {field.value}" for field in embed.fields)
    return "\n".join(parts)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
