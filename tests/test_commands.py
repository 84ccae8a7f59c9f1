from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from conftest import embed_text, embeds_sent, make_context
from naplesbot.commands import _template as template_module
from naplesbot.commands.admin import deploy as deploy_module
from naplesbot.commands.admin import shutdown as shutdown_module
from naplesbot.commands.admin import talk as talk_module
from naplesbot.commands.user import info as info_module
from naplesbot.commands.user import ping as ping_module
from naplesbot.commands.user import whois as whois_module
from naplesbot.registry.command_registry import CommandRegistry

CREATED = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def bot():
    return SimpleNamespace(
        latency=0.042,
        close=AsyncMock(),
        exit_code=None,
        deployment=SimpleNamespace(redeploy_guild=AsyncMock(), redeploy_all_guilds=AsyncMock()),
    )


def text_channel(channel_id=10, *, can_send=True):
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = channel_id
    channel.mention = f"<#{channel_id}>"
    channel.permissions_for.return_value = SimpleNamespace(view_channel=True, send_messages=can_send)
    channel.send = AsyncMock(return_value=SimpleNamespace(jump_url="https://discord.com/channels/1/10/99"))
    return channel


# -------------------- /ping --------------------

@pytest.mark.asyncio
async def test_ping_reports_round_trip_and_gateway_latency(bot):
    ctx = make_context(ping_module.ping, bot=bot)

    await ping_module.ping.callback(ctx)

    assert ctx.interaction.response.sent[0]["content"] == "🏓 Pinging..."
    kwargs = ctx.interaction.edit_original_response.await_args.kwargs
    assert kwargs["content"] is None
    assert "Pong" in kwargs["embed"].title
    assert "42 ms" in embed_text(kwargs["embed"])


@pytest.mark.asyncio
async def test_ping_before_first_heartbeat_shows_zero_latency(bot):
    bot.latency = float("nan")
    ctx = make_context(ping_module.ping, bot=bot)

    await ping_module.ping.callback(ctx)

    embed = ctx.interaction.edit_original_response.await_args.kwargs["embed"]
    assert {field.name: field.value for field in embed.fields}["Gateway"] == "0 ms"


# -------------------- /shutdown --------------------

@pytest.mark.asyncio
async def test_shutdown_requires_confirmation_word(bot):
    ctx = make_context(shutdown_module.shutdown, bot=bot)

    await shutdown_module.shutdown.callback(ctx, "yes")

    (entry,) = ctx.interaction.response.sent
    assert entry["ephemeral"] is True
    assert shutdown_module.CONFIRMATION_WORD in embed_text(entry["embed"])
    bot.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_shutdown_confirmed_closes_the_bot(bot, monkeypatch):
    monkeypatch.setattr(shutdown_module, "SHUTDOWN_DELAY_SECONDS", 0)
    ctx = make_context(shutdown_module.shutdown, bot=bot)

    await shutdown_module.shutdown.callback(ctx, shutdown_module.CONFIRMATION_WORD)

    assert "Shutting down" in embed_text(ctx.interaction.response.sent[0]["embed"])
    assert bot.exit_code == 0
    bot.close.assert_awaited_once()


# -------------------- /talk --------------------

@pytest.mark.asyncio
async def test_talk_sends_to_selected_channel_and_links_it(bot):
    channel = text_channel()
    guild = SimpleNamespace(id=1, me=SimpleNamespace(id=2))
    ctx = make_context(talk_module.talk, bot=bot, guild_id=1, guild=guild)

    await talk_module.talk.callback(ctx, "hello", channel)

    channel.permissions_for.assert_called_once_with(guild.me)
    channel.send.assert_awaited_once_with("hello")
    (entry,) = ctx.interaction.response.sent
    assert entry["ephemeral"] is True
    assert "https://discord.com/channels/1/10/99" in embed_text(entry["embed"])


@pytest.mark.asyncio
async def test_talk_refuses_channels_it_cannot_write_to(bot):
    channel = text_channel(can_send=False)
    ctx = make_context(talk_module.talk, bot=bot, guild_id=1, guild=SimpleNamespace(id=1, me=SimpleNamespace(id=2)))

    await talk_module.talk.callback(ctx, "hello", channel)

    channel.send.assert_not_awaited()
    assert "Missing permissions" in embed_text(ctx.interaction.response.sent[0]["embed"])


@pytest.mark.asyncio
async def test_talk_defaults_to_current_channel(bot):
    current = SimpleNamespace(id=777, send=AsyncMock(return_value=SimpleNamespace(jump_url="https://jump")))
    ctx = make_context(talk_module.talk, bot=bot, channel=current)

    await talk_module.talk.callback(ctx, "hi", None)

    current.send.assert_awaited_once_with("hi")


def test_talk_options():
    text, channel = talk_module.talk.options

    assert (text.name, text.required, text.max_length) == ("text", True, talk_module.MAX_MESSAGE_LENGTH)
    assert talk_module.MAX_MESSAGE_LENGTH == 2000
    assert (channel.name, channel.required) == ("channel", False)
    assert channel.channel_types == [discord.ChannelType.text, discord.ChannelType.news]


# -------------------- /info and /whois --------------------

@pytest.mark.asyncio
async def test_info_outside_a_server_warns(bot):
    ctx = make_context(info_module.info, bot=bot)

    await info_module.info.callback(ctx)

    (entry,) = ctx.interaction.response.sent
    assert entry["ephemeral"] is True
    assert "Server only" in entry["embed"].title


@pytest.mark.asyncio
async def test_info_describes_the_guild(bot):
    guild = SimpleNamespace(
        id=1,
        name="Naples",
        icon=None,
        owner_id=5,
        member_count=12,
        roles=[1, 2, 3],
        premium_subscription_count=None,
        created_at=CREATED,
    )
    ctx = make_context(info_module.info, bot=bot, guild_id=1, guild=guild)

    await info_module.info.callback(ctx)

    embed = ctx.interaction.response.sent[0]["embed"]
    assert "Naples" in embed.title
    assert embed.footer.text == "Guild ID: 1"
    assert "12" in embed_text(embed)


@pytest.mark.asyncio
async def test_whois_falls_back_to_fetching_the_member(bot):
    user = SimpleNamespace(id=8, created_at=CREATED, display_avatar=SimpleNamespace(url="https://avatar"))
    member = SimpleNamespace(id=8, created_at=CREATED, joined_at=CREATED, display_avatar=user.display_avatar)
    guild = SimpleNamespace(id=1, get_member=MagicMock(return_value=None), fetch_member=AsyncMock(return_value=member))
    ctx = make_context(whois_module.whois, bot=bot, guild_id=1, guild=guild)

    await whois_module.whois.callback(ctx, user)

    assert ctx.interaction.response.deferred == {"ephemeral": False}
    guild.fetch_member.assert_awaited_once_with(8)
    embed = ctx.interaction.edit_original_response.await_args.kwargs["embed"]
    assert embed.thumbnail.url == "https://avatar"
    assert any(field.name == "Joined server" and field.value.startswith("<t:") for field in embed.fields)


# -------------------- /admin-deploy --------------------

@pytest.mark.asyncio
async def test_admin_deploy_this_guild(bot):
    bot.deployment.redeploy_guild.return_value = 2
    ctx = make_context(deploy_module.this_guild, bot=bot, guild_id=1, guild=SimpleNamespace(id=1))

    await deploy_module.this_guild.callback(ctx)

    assert ctx.interaction.response.deferred == {"ephemeral": True}
    bot.deployment.redeploy_guild.assert_awaited_once_with(1)
    embed = ctx.interaction.edit_original_response.await_args.kwargs["embed"]
    assert "1 guild(s)" in embed.description


@pytest.mark.asyncio
async def test_admin_deploy_this_guild_outside_a_server(bot):
    ctx = make_context(deploy_module.this_guild, bot=bot)

    await deploy_module.this_guild.callback(ctx)

    bot.deployment.redeploy_guild.assert_not_awaited()
    assert "Server only" in ctx.interaction.edit_original_response.await_args.kwargs["embed"].title


@pytest.mark.asyncio
async def test_admin_deploy_all_guilds_reports_http_failure(bot):
    failure = discord.HTTPException(SimpleNamespace(status=429, reason="Too Many Requests"), "rate limited")
    bot.deployment.redeploy_all_guilds.side_effect = failure
    ctx = make_context(deploy_module.all_guilds, bot=bot)

    await deploy_module.all_guilds.callback(ctx)

    embed = ctx.interaction.edit_original_response.await_args.kwargs["embed"]
    assert "Deploy failed" in embed.title
    assert embeds_sent(ctx.interaction) == []


def test_admin_deploy_subcommands():
    assert [sub.name for sub in deploy_module.admin_deploy.subcommands] == ["this-guild", "all-guilds"]
    assert deploy_module.this_guild.parent is deploy_module.admin_deploy


# -------------------- Extension setup --------------------

def test_setup_registers_each_command():
    bot = SimpleNamespace(command_registry=CommandRegistry())

    for module in (ping_module, whois_module, info_module, talk_module, shutdown_module, deploy_module):
        module.setup(bot)

    assert bot.command_registry.names() == ["admin-deploy", "info", "ping", "shutdown", "talk", "whois"]
    assert bot.command_registry.get("talk") is talk_module.command


@pytest.mark.asyncio
async def test_template_echoes_text():
    ctx = make_context(template_module.template)

    await template_module.template.callback(ctx, "echo")

    (entry,) = ctx.interaction.response.sent
    assert entry["content"] == f"Hello {ctx.user.mention}, you said: echo"
    assert entry["ephemeral"] is True
