import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from naplesbot.bot.permissions import PermissionResolver
from naplesbot.datatypes.command_datatypes import PermissionLevel

GUILD_ID = 100
OWNER_ID = 1
MOD_ROLE, ADMIN_ROLE, OWNER_ROLE = 20, 30, 40


def make_member(*role_ids):
    return SimpleNamespace(roles=[SimpleNamespace(id=rid) for rid in role_ids])


def make_client(members):
    guild = SimpleNamespace(
        get_member=lambda uid: members.get(uid),
        fetch_member=AsyncMock(side_effect=lambda uid: members[uid]),
    )
    client = SimpleNamespace(get_guild=MagicMock(return_value=guild), fetch_guild=AsyncMock(return_value=guild))
    return client, guild


@pytest.fixture
def role_levels():
    return {GUILD_ID: {2: [MOD_ROLE], 3: [ADMIN_ROLE], 4: [OWNER_ROLE]}}


@pytest.mark.asyncio
async def test_owner_short_circuits_to_top_level(role_levels):
    client, _ = make_client({})
    resolver = PermissionResolver(client, [OWNER_ID], role_levels)

    assert await resolver.resolve_level(OWNER_ID, GUILD_ID) == PermissionLevel.OWNER
    assert await resolver.resolve_level(OWNER_ID, None) == PermissionLevel.OWNER
    client.get_guild.assert_not_called()


@pytest.mark.asyncio
async def test_no_guild_or_unconfigured_guild_is_user_level(role_levels):
    client, _ = make_client({})
    resolver = PermissionResolver(client, [], role_levels)

    assert await resolver.resolve_level(5, None) == PermissionLevel.USER
    assert await resolver.resolve_level(5, 999) == PermissionLevel.USER
    client.get_guild.assert_not_called()


@pytest.mark.asyncio
async def test_highest_matching_role_wins(role_levels):
    client, _ = make_client({5: make_member(MOD_ROLE, ADMIN_ROLE), 6: make_member(MOD_ROLE), 7: make_member(99)})
    resolver = PermissionResolver(client, [], role_levels)

    assert await resolver.resolve_level(5, GUILD_ID) == PermissionLevel.ADMIN
    assert await resolver.resolve_level(6, GUILD_ID) == PermissionLevel.MODERATOR
    assert await resolver.resolve_level(7, GUILD_ID) == PermissionLevel.USER


@pytest.mark.asyncio
async def test_member_is_fetched_when_not_cached(role_levels):
    members = {8: make_member(ADMIN_ROLE)}
    client, guild = make_client({})
    guild.fetch_member = AsyncMock(return_value=members[8])
    resolver = PermissionResolver(client, [], role_levels)

    assert await resolver.resolve_level(8, GUILD_ID) == PermissionLevel.ADMIN
    guild.fetch_member.assert_awaited_once_with(8)


@pytest.mark.asyncio
async def test_lookup_failure_degrades_to_user(role_levels, caplog):
    client = SimpleNamespace(
        get_guild=MagicMock(return_value=None),
        fetch_guild=AsyncMock(side_effect=RuntimeError("gateway down")),
    )
    resolver = PermissionResolver(client, [], role_levels)

    with caplog.at_level(logging.WARNING):
        assert await resolver.resolve_level(5, GUILD_ID) == PermissionLevel.USER
    assert any("gateway down" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_level_zero_is_owner_only(role_levels):
    client, _ = make_client({5: make_member(ADMIN_ROLE)})
    resolver = PermissionResolver(client, [OWNER_ID], role_levels)

    assert await resolver.has_level(OWNER_ID, GUILD_ID, PermissionLevel.BOT_OWNER) is True
    assert await resolver.has_level(5, GUILD_ID, PermissionLevel.BOT_OWNER) is False


@pytest.mark.asyncio
async def test_has_level_compares_rank(role_levels):
    client, _ = make_client({6: make_member(MOD_ROLE)})
    resolver = PermissionResolver(client, [], role_levels)

    assert await resolver.has_level(6, GUILD_ID, PermissionLevel.USER) is True
    assert await resolver.has_level(6, GUILD_ID, PermissionLevel.MODERATOR) is True
    assert await resolver.has_level(6, GUILD_ID, PermissionLevel.ADMIN) is False


@pytest.mark.asyncio
async def test_owner_role_does_not_grant_level_zero(role_levels):
    client, _ = make_client({9: make_member(OWNER_ROLE)})
    resolver = PermissionResolver(client, [OWNER_ID], role_levels)

    assert await resolver.resolve_level(9, GUILD_ID) == PermissionLevel.OWNER
    assert await resolver.has_level(9, GUILD_ID, PermissionLevel.OWNER) is True
    assert await resolver.has_level(9, GUILD_ID, PermissionLevel.BOT_OWNER) is False
    assert await resolver.evaluate(9, GUILD_ID, PermissionLevel.BOT_OWNER) == (False, PermissionLevel.OWNER)


@pytest.mark.asyncio
@pytest.mark.parametrize("user_id", [5, 6, 7, 9])
async def test_has_level_is_monotonic_across_ranks(role_levels, user_id):
    client, _ = make_client(
        {5: make_member(ADMIN_ROLE), 6: make_member(MOD_ROLE), 7: make_member(99), 9: make_member(OWNER_ROLE)}
    )
    resolver = PermissionResolver(client, [], role_levels)
    ranks = [PermissionLevel.USER, PermissionLevel.MODERATOR, PermissionLevel.ADMIN, PermissionLevel.OWNER]

    results = [await resolver.has_level(user_id, GUILD_ID, level) for level in ranks]

    # once a rank is denied, every higher rank is denied too
    assert results == sorted(results, reverse=True)
    assert results[0] is True


@pytest.mark.asyncio
async def test_evaluate_fetches_the_member_once(role_levels):
    client, guild = make_client({})
    guild.fetch_member = AsyncMock(return_value=make_member(MOD_ROLE))
    resolver = PermissionResolver(client, [], role_levels)

    assert await resolver.evaluate(6, GUILD_ID, PermissionLevel.ADMIN) == (False, PermissionLevel.MODERATOR)
    guild.fetch_member.assert_awaited_once_with(6)


def test_level_names():
    assert PermissionResolver.level_name(0) == "Bot Owner"
    assert PermissionResolver.level_name(1) == "User"
    assert PermissionResolver.level_name(3) == "Administrator"
    assert PermissionResolver.level_name(4) == "Owner"
    assert PermissionResolver.level_name(17) == "Unknown"
