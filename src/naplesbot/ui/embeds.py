"""
Embed builders for replies, denials and log channels.

Builders are plain functions returning :class:`discord.Embed`; none of them
send anything.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, Optional

import discord

if TYPE_CHECKING:
    from naplesbot.bot.error_reporter import ErrorReport

# Discord caps embed field values at 1024 characters
FIELD_LIMIT = 1024


def _clip(value: str, limit: int = FIELD_LIMIT) -> str:
    return value if len(value) <= limit else value[: limit - 3] + "..."


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def format_timestamp(moment: Optional[datetime.datetime], style: str = "F") -> str:
    """Discord timestamp markup, or ``Unknown`` when the moment is missing."""
    if moment is None:
        return "Unknown"
    return f"<t:{int(moment.timestamp())}:{style}>"


def info_embed(title: str, description: str = "") -> discord.Embed:
    return discord.Embed(title=title, description=description, color=discord.Color.blurple(), timestamp=_now())


def success_embed(title: str, description: str = "") -> discord.Embed:
    return discord.Embed(title=f"✅ {title}", description=description, color=discord.Color.green(), timestamp=_now())


def warning_embed(title: str, description: str = "") -> discord.Embed:
    return discord.Embed(title=f"⚠️ {title}", description=description, color=discord.Color.gold(), timestamp=_now())


def error_embed(title: str, description: str = "") -> discord.Embed:
    return discord.Embed(title=f"❌ {title}", description=description, color=discord.Color.red(), timestamp=_now())


# -------------------- Dispatch outcomes --------------------

def command_not_found_embed(command_name: str) -> discord.Embed:
    return error_embed("Command not found", f"The command `/{command_name}` does not exist or is no longer available.")


def permission_denied_embed(required_level_name: str, user_level_name: str) -> discord.Embed:
    embed = error_embed("Insufficient permissions", "You do not have permission to use this command.")
    embed.add_field(name="Required level", value=required_level_name, inline=True)
    embed.add_field(name="Your level", value=user_level_name, inline=True)
    return embed


def cooldown_embed(command_name: str, time_left: float) -> discord.Embed:
    return warning_embed(
        "Cooldown active",
        f"Please wait {time_left:.1f} more seconds before using `/{command_name}` again.",
    )


def command_failed_embed() -> discord.Embed:
    return error_embed(
        "Something went wrong",
        "An error occurred while running this command. The problem has been reported.",
    )


# -------------------- Log channels --------------------

def error_report_embed(report: "ErrorReport") -> discord.Embed:
    embed = discord.Embed(title=f"🐛 {report.error_type}", color=discord.Color.dark_red(), timestamp=report.timestamp)
    embed.add_field(name="Message", value=_clip(report.message or "(no message)"), inline=False)
    embed.add_field(name="Location", value=_clip(report.location), inline=False)
    if report.context:
        lines = "\n".join(f"**{key}**: {value}" for key, value in report.context.items())
        embed.add_field(name="Context", value=_clip(lines), inline=False)
    embed.add_field(name="Stack", value=_clip(f"```py\n{report.stack_excerpt}\n```"), inline=False)
    return embed


def interaction_log_embed(
    actor: discord.abc.User,
    label: str,
    options: Dict[str, Any],
    channel_mention: str,
    guild_name: str,
) -> discord.Embed:
    embed = discord.Embed(title="📝 Interaction", color=discord.Color.blurple(), timestamp=_now())
    embed.add_field(name="User", value=f"{actor} ({actor.id})", inline=False)
    embed.add_field(name="Command", value=label, inline=True)
    embed.add_field(name="Channel", value=channel_mention, inline=True)
    embed.add_field(name="Guild", value=guild_name, inline=True)
    if options:
        rendered = "\n".join(f"`{key}`: {value}" for key, value in options.items())
        embed.add_field(name="Options", value=_clip(rendered), inline=False)
    return embed


# -------------------- Command replies --------------------

def latency_label(latency_ms: float) -> str:
    if latency_ms < 100:
        return "🟢 Excellent"
    if latency_ms < 200:
        return "🟡 Good"
    if latency_ms < 500:
        return "🟠 Average"
    return "🔴 Slow"


def ping_embed(roundtrip_ms: float, gateway_ms: float) -> discord.Embed:
    embed = info_embed("🏓 Pong!")
    embed.add_field(name="Round trip", value=f"{roundtrip_ms:.0f} ms", inline=True)
    embed.add_field(name="Gateway", value=f"{gateway_ms:.0f} ms", inline=True)
    embed.add_field(name="Status", value=latency_label(roundtrip_ms), inline=True)
    return embed


def whois_embed(user: discord.abc.User, member: Optional[discord.Member]) -> discord.Embed:
    embed = info_embed(f"👤 {user}")
    avatar = getattr(user, "display_avatar", None)
    if avatar is not None:
        embed.set_thumbnail(url=avatar.url)
    embed.add_field(name="ID", value=str(user.id), inline=True)
    embed.add_field(name="Account created", value=format_timestamp(user.created_at), inline=True)
    joined = member.joined_at if member is not None else None
    embed.add_field(name="Joined server", value=format_timestamp(joined), inline=True)
    return embed


def server_info_embed(guild: discord.Guild) -> discord.Embed:
    embed = info_embed(f"🏰 {guild.name}")
    if guild.icon is not None:
        embed.set_thumbnail(url=guild.icon.url)
    embed.add_field(name="Owner", value=f"<@{guild.owner_id}>", inline=True)
    embed.add_field(name="Members", value=str(guild.member_count or 0), inline=True)
    embed.add_field(name="Roles", value=str(len(guild.roles)), inline=True)
    embed.add_field(name="Boosts", value=str(guild.premium_subscription_count or 0), inline=True)
    embed.add_field(name="Created", value=format_timestamp(guild.created_at), inline=True)
    embed.set_footer(text=f"Guild ID: {guild.id}")
    return embed


def deploy_result_embed(scope: str, guild_ids: Iterable[int]) -> discord.Embed:
    ids = list(guild_ids)
    description = f"Guild commands redeployed for {len(ids)} guild(s)." if ids else "No guild commands to deploy."
    return success_embed(f"Deploy complete ({scope})", description)
