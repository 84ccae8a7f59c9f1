"""
Publishing command definitions to Discord.

Every push is a full replace of the scope's command set through py-cord's
``register_commands`` in forced bulk mode; nothing is diffed against what
Discord already holds.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import discord

from naplesbot.datatypes.command_datatypes import ALL_GUILDS, CommandDefinition
from naplesbot.registry.command_registry import CommandRegistry
from naplesbot.util.logger import get_logger

logger = get_logger("deployment")


@dataclass
class DeploymentPlan:
    global_commands: List[CommandDefinition] = field(default_factory=list)
    guild_commands: Dict[int, List[CommandDefinition]] = field(default_factory=dict)
    skipped: List[CommandDefinition] = field(default_factory=list)
    targets: Dict[str, List[int]] = field(default_factory=dict)


class DeploymentManager:
    """
    Partitions the registry into global and per-guild sets and pushes them.

    Args:
        client: The bot; it holds the pending commands, performs the pushes and
            lists the joined guilds.
        registry: Source of command definitions.
        default_guild_id: Fallback target for guild-scoped commands that name
            no guilds.
    """

    def __init__(
        self,
        client: discord.Bot,
        registry: CommandRegistry,
        default_guild_id: Optional[int] = None,
    ) -> None:
        self._client = client
        self._registry = registry
        self.default_guild_id = default_guild_id

    def joined_guild_ids(self) -> List[int]:
        return [guild.id for guild in self._client.guilds]

    def targets_for(self, command: CommandDefinition, joined_guild_ids: Iterable[int]) -> List[int]:
        """Guild ids a guild-scoped command should be deployed to."""
        if command.guilds_id:
            targets = [gid for gid in command.guilds_id if gid != ALL_GUILDS]
            if command.targets_all_guilds:
                targets.extend(joined_guild_ids)
            return list(dict.fromkeys(targets))
        if self.default_guild_id is not None:
            return [self.default_guild_id]
        return []

    def plan(self, joined_guild_ids: Optional[Iterable[int]] = None) -> DeploymentPlan:
        joined = list(self.joined_guild_ids() if joined_guild_ids is None else joined_guild_ids)
        plan = DeploymentPlan(global_commands=self._registry.global_commands())

        for command in self._registry.guild_commands():
            targets = self.targets_for(command, joined)
            if not targets:
                if not command.targets_all_guilds:
                    logger.warning(
                        "[DEPLOY] Command '%s' is guild-scoped but has no guilds and no default guild; skipping",
                        command.name,
                    )
                    plan.skipped.append(command)
                continue
            plan.targets[command.name] = targets
            for guild_id in targets:
                plan.guild_commands.setdefault(guild_id, []).append(command)

        return plan

    def attach(self, plan: DeploymentPlan) -> None:
        """Add planned commands to the bot and point each one at its target guilds.

        py-cord maps registered command ids back to the bot's pending commands
        when interactions arrive, so every pushed command is attached first.
        """
        pending = self._client.pending_application_commands
        for definition in self._registry:
            if definition.is_global:
                definition.command.guild_ids = None
            elif definition.name in plan.targets:
                definition.command.guild_ids = list(plan.targets[definition.name])
            else:
                continue
            if not any(command is definition.command for command in pending):
                self._client.add_application_command(definition.command)

    async def _push(self, commands: List[CommandDefinition], guild_id: Optional[int] = None) -> None:
        await self._client.register_commands(
            [definition.command for definition in commands],
            guild_id=guild_id,
            method="bulk",
            force=True,
        )
        if guild_id is None:
            logger.info("[DEPLOY] Deployed %d global command(s)", len(commands))
        else:
            logger.info("[DEPLOY] Deployed %d command(s) to guild %s", len(commands), guild_id)

    async def deploy_all(self) -> DeploymentPlan:
        """Push the global set once and every guild set. A failing guild does not stop the others."""
        plan = self.plan()
        self.attach(plan)
        await self._push(plan.global_commands)

        for guild_id, commands in plan.guild_commands.items():
            try:
                await self._push(commands, guild_id)
            except discord.HTTPException as exc:
                logger.error("[DEPLOY] Failed to deploy commands to guild %s: %s", guild_id, exc)
        return plan

    def commands_for_guild(self, guild_id: int) -> List[CommandDefinition]:
        return self.plan().guild_commands.get(guild_id, [])

    async def redeploy_guild(self, guild_id: int) -> int:
        """Replace the guild's command set with the commands targeting it; returns how many were pushed.

        A guild no command targets gets an empty set, which clears anything
        deployed there before.
        """
        plan = self.plan()
        self.attach(plan)
        commands = plan.guild_commands.get(guild_id, [])
        await self._push(commands, guild_id)
        return len(commands)

    async def redeploy_all_guilds(self) -> List[int]:
        """Redeploy every joined guild concurrently; returns the guild ids that received commands."""
        guild_ids = self.joined_guild_ids()
        results = await asyncio.gather(*(self.redeploy_guild(gid) for gid in guild_ids), return_exceptions=True)

        deployed: List[int] = []
        for guild_id, result in zip(guild_ids, results):
            if isinstance(result, BaseException):
                logger.error("[DEPLOY] Failed to redeploy guild %s: %s", guild_id, result)
            elif result:
                deployed.append(guild_id)
        return deployed
