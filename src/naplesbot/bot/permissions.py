"""
Permission level resolution.

Levels come from two static sources: the bot owner set and, per guild, a
table mapping levels to role ids. Owners always resolve to the top level;
everyone else gets the highest level whose roles they hold, or ``USER``.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

import discord

from naplesbot.datatypes.command_datatypes import PermissionLevel
from naplesbot.util.logger import get_logger

logger = get_logger("permissions")


class PermissionResolver:
    """
    Resolves a user's permission level in a guild.

    Args:
        client: Gateway client used to look up guild members.
        bot_owners: User ids that hold every permission.
        role_levels: ``{guild_id: {level: [role_id, ...]}}``.
    """

    def __init__(
        self,
        client: discord.Client,
        bot_owners: Iterable[int],
        role_levels: Mapping[int, Mapping[int, List[int]]],
    ) -> None:
        self._client = client
        self._owners = frozenset(int(uid) for uid in bot_owners)
        self._role_levels: Dict[int, Dict[int, frozenset[int]]] = {
            int(guild_id): {int(level): frozenset(roles) for level, roles in table.items()}
            for guild_id, table in role_levels.items()
        }

    def is_owner(self, user_id: int) -> bool:
        return user_id in self._owners

    async def _member_role_ids(self, guild_id: int, user_id: int) -> frozenset[int]:
        guild = self._client.get_guild(guild_id)
        if guild is None:
            guild = await self._client.fetch_guild(guild_id)

        member = guild.get_member(user_id)
        if member is None:
            member = await guild.fetch_member(user_id)
        return frozenset(role.id for role in member.roles)

    async def resolve_level(self, user_id: int, guild_id: Optional[int]) -> int:
        """Return the user's level in ``guild_id``; lookup failures degrade to ``USER``."""
        if self.is_owner(user_id):
            return int(PermissionLevel.OWNER)

        table = self._role_levels.get(guild_id) if guild_id is not None else None
        if not table:
            return int(PermissionLevel.USER)

        try:
            role_ids = await self._member_role_ids(guild_id, user_id)
        except Exception as exc:
            logger.warning(
                "[PERMISSIONS] Could not fetch roles for user %s in guild %s: %s", user_id, guild_id, exc
            )
            return int(PermissionLevel.USER)

        for level in sorted(table, reverse=True):
            if table[level] & role_ids:
                return level
        return int(PermissionLevel.USER)

    async def evaluate(self, user_id: int, guild_id: Optional[int], required_level: int) -> Tuple[bool, int]:
        """Resolve the user's level once and return ``(allowed, level)``.

        Level 0 is an owner-only gate no role can satisfy; any other level
        compares by rank.
        """
        level = await self.resolve_level(user_id, guild_id)
        if required_level == PermissionLevel.BOT_OWNER:
            return self.is_owner(user_id), level
        return level >= required_level, level

    async def has_level(self, user_id: int, guild_id: Optional[int], required_level: int) -> bool:
        if required_level == PermissionLevel.BOT_OWNER:
            return self.is_owner(user_id)
        allowed, _ = await self.evaluate(user_id, guild_id, required_level)
        return allowed

    @staticmethod
    def level_name(level: int) -> str:
        return PermissionLevel.name_of(level)
