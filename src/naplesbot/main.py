"""
NaplesBot
=========

A Discord bot with slash commands, role-based permission levels, per-command
cooldowns, a MySQL data access layer and channel-based error reporting.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.

    Resolution order:
    1. NAPLESBOT_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this package's directory.
    """
    if env_home := os.getenv("NAPLESBOT_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]


BASE_DIR = resolve_base_dir()

import asyncio
import signal
from typing import Optional, Tuple

import discord

from naplesbot.bot.client import NaplesBot
from naplesbot.configuration.app_configuration import AppConfig, load_app_config
from naplesbot.configuration.database_config import DatabaseSettings, load_database_settings
from naplesbot.configuration.discord_config import DiscordSettings, load_discord_settings
from naplesbot.configuration.environment import ConfigurationError, load_environment
from naplesbot.database.database import DatabaseManager, initialize_database
from naplesbot.database.errors import DatabaseError
from naplesbot.registry.plugin_loader import load_extensions
from naplesbot.util.logger import get_logger

logger = get_logger("main")

PACKAGE_DIR = Path(__file__).resolve().parent
COMMANDS_DIR = PACKAGE_DIR / "commands"
EVENTS_DIR = PACKAGE_DIR / "events"


def load_settings(base_dir: Path) -> Tuple[AppConfig, DiscordSettings, DatabaseSettings]:
    """Load ``.env`` and the YAML configuration, then read every required setting.

    Raises
    ------
    ConfigurationError
        If any required environment variable is missing or malformed.
    """
    load_environment(base_dir)
    app_config = load_app_config(base_dir / "config" / "app_config.yml")
    discord_settings = load_discord_settings()
    database_settings = load_database_settings(app_config.database_connection_limit, app_config.database_charset)
    return app_config, discord_settings, database_settings


def create_bot(app_config: AppConfig, settings: DiscordSettings, database: Optional[DatabaseManager]) -> NaplesBot:
    """Instantiate the client and load every command and event module as an extension."""
    bot = NaplesBot(app_config, settings, database)
    commands = load_extensions(bot, COMMANDS_DIR, "naplesbot.commands")
    events = load_extensions(bot, EVENTS_DIR, "naplesbot.events")
    logger.info(
        "Loaded %d command(s) and %d event handler(s) from %d extension(s).",
        len(bot.command_registry), len(bot.event_registry), len(commands.loaded) + len(events.loaded),
    )
    return bot


def install_loop_exception_handler(bot: NaplesBot) -> None:
    """Treat unhandled asynchronous errors as fatal: log them and close the client."""
    loop = asyncio.get_running_loop()

    def handle_async_exception(loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exception = context.get("exception")
        logger.critical(
            "Unhandled asynchronous error: %s",
            context.get("message", "no message"),
            exc_info=(type(exception), exception, exception.__traceback__) if exception else None,
        )
        bot.exit_code = 1
        if not bot.is_closed():
            loop.create_task(bot.close())

    loop.set_exception_handler(handle_async_exception)


def install_signal_handlers(bot: NaplesBot) -> None:
    """Close the client on SIGINT/SIGTERM where the platform supports it."""
    loop = asyncio.get_running_loop()

    def request_stop(sig: signal.Signals) -> None:
        logger.info("Received %s; shutting down.", sig.name)
        if not bot.is_closed():
            loop.create_task(bot.close())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, request_stop, sig)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handler for %s not supported on this platform", sig.name)


async def start_bot(bot: NaplesBot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: Optional[NaplesBot], database: Optional[DatabaseManager]) -> None:
    """Close the gateway connection, then the database pool."""
    if bot is not None and not bot.is_closed():
        await bot.close()

    if database is not None:
        try:
            await database.close()
        except Exception as exc:
            logger.exception("Error while closing the database pool: %s", exc)

    logger.info("Shutdown complete.")


async def async_main() -> int:
    """Bootstrap configuration, database and client, returning an exit code."""
    try:
        app_config, discord_settings, database_settings = load_settings(BASE_DIR)
    except ConfigurationError as exc:
        logger.critical("Configuration error: %s", exc)
        return 1

    try:
        logger.info("Initializing database...")
        database = await initialize_database(database_settings)
    except (ConfigurationError, DatabaseError) as exc:
        logger.critical("Failed to initialize database: %s", exc)
        return 1

    try:
        bot = create_bot(app_config, discord_settings, database)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await database.close()
        return 1

    install_loop_exception_handler(bot)
    install_signal_handlers(bot)

    exit_code = 0
    try:
        await start_bot(bot, discord_settings.token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, database)

    return exit_code or bot.exit_code


def main() -> int:
    """Entrypoint that runs the async runtime and returns the process exit code."""
    logger.info("Starting NaplesBot…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 0 if code is None else 1


if __name__ == "__main__":
    sys.exit(main())
