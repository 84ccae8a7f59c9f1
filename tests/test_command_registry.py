import logging
import textwrap
import uuid
from pathlib import Path

import discord
import pytest

import naplesbot.commands
from naplesbot.bot.client import NaplesBot
from naplesbot.configuration.app_configuration import AppConfig
from naplesbot.configuration.discord_config import DiscordSettings
from naplesbot.datatypes.command_datatypes import CommandDefinition
from naplesbot.registry.command_registry import CommandRegistry
from naplesbot.registry.plugin_loader import PluginLoadError, load_extensions, module_name_for

VALID_COMMAND = """
import discord
from naplesbot.datatypes.command_datatypes import CommandDefinition

@discord.slash_command(name="{name}", description="test")
async def run(ctx):
    await ctx.respond("{reply}")

command = CommandDefinition(run)

def setup(bot):
    bot.command_registry.register(command)
"""


def write_plugin(directory: Path, filename: str, source: str) -> Path:
    path = directory / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(source), encoding="utf-8")
    return path


def make_bot(tmp_path):
    # py-cord binds the client to the running loop, so build it inside async tests
    return NaplesBot(AppConfig(tmp_path / "missing.yml"), DiscordSettings(token="t", client_id=1))


async def noop(ctx):
    return None


def slash(name, description="d"):
    return discord.SlashCommand(noop, name=name, description=description)


@pytest.fixture
def plugin_package(tmp_path: Path, monkeypatch):
    """An importable package of command plugins; returns (root, package name)."""
    package = f"plugins_{uuid.uuid4().hex}"
    root = tmp_path / package
    write_plugin(root, "__init__.py", "")
    write_plugin(root, "hello.py", VALID_COMMAND.format(name="hello", reply="hi"))
    write_plugin(root, "nested/__init__.py", "")
    write_plugin(root, "nested/deep.py", VALID_COMMAND.format(name="deep", reply="deep"))
    write_plugin(root, "_private.py", VALID_COMMAND.format(name="private", reply="no"))
    write_plugin(root, "broken.py", "import does_not_exist_anywhere\n")
    write_plugin(root, "empty.py", "x = 1\n")
    write_plugin(
        root,
        "wrong_type.py",
        """
        def setup(bot):
            bot.command_registry.register({'name': 'dict'})
        """,
    )
    write_plugin(root, "notes.txt", "not python")
    monkeypatch.syspath_prepend(str(tmp_path))
    return root, package


@pytest.mark.asyncio
async def test_load_extensions_keeps_valid_and_skips_the_rest(tmp_path, plugin_package, caplog):
    bot = make_bot(tmp_path)
    root, package = plugin_package

    with caplog.at_level(logging.INFO):
        report = load_extensions(bot, root, package)

    assert report.loaded == [f"{package}.hello", f"{package}.nested.deep"]
    assert set(report.failures) == {f"{package}.broken", f"{package}.empty", f"{package}.wrong_type"}
    assert "ModuleNotFoundError" in report.failures[f"{package}.broken"]
    assert "setup" in report.failures[f"{package}.empty"]
    assert "PluginLoadError" in report.failures[f"{package}.wrong_type"]
    assert "dict" in report.failures[f"{package}.wrong_type"]

    assert bot.command_registry.names() == ["deep", "hello"]
    assert "private" not in bot.command_registry

    messages = [record.getMessage() for record in caplog.records]
    assert any("Skipped broken.py" in message for message in messages)
    assert any("Loaded 2 of 5" in message for message in messages)


@pytest.mark.asyncio
async def test_loading_twice_keeps_one_definition_per_name(tmp_path, plugin_package):
    bot = make_bot(tmp_path)
    root, package = plugin_package

    load_extensions(bot, root, package)
    second = load_extensions(bot, root, package)

    assert second.loaded == []
    assert "already loaded" in second.failures[f"{package}.hello"]
    assert len(bot.command_registry) == 2


def test_last_registered_definition_wins(caplog):
    registry = CommandRegistry()
    first = CommandDefinition(slash("dup", "first"))
    second = CommandDefinition(slash("dup", "second"))

    registry.register(first)
    with caplog.at_level(logging.WARNING):
        registry.register(second)

    assert len(registry) == 1
    assert registry.get("dup") is second
    assert any("Replacing existing command 'dup'" in record.getMessage() for record in caplog.records)


def test_register_rejects_non_definitions():
    with pytest.raises(PluginLoadError) as excinfo:
        CommandRegistry().register({"name": "x"})

    assert excinfo.value.source == "command"
    assert "dict" in excinfo.value.reason


def test_missing_directory_loads_nothing(tmp_path):
    report = load_extensions(object(), tmp_path / "missing", "missing")

    assert report.loaded == []
    assert report.failures == {}


def test_module_names_follow_relative_path(tmp_path):
    root = tmp_path / "commands"
    path = root / "admin" / "talk.py"

    assert module_name_for(path, root, "naplesbot.commands") == "naplesbot.commands.admin.talk"


@pytest.mark.asyncio
async def test_bundled_commands_load(tmp_path):
    bot = make_bot(tmp_path)
    root = Path(naplesbot.commands.__file__).parent

    report = load_extensions(bot, root, "naplesbot.commands")

    registry = bot.command_registry
    assert report.failures == {}
    assert registry.names() == ["admin-deploy", "info", "ping", "shutdown", "talk", "whois"]
    assert "template" not in registry
    assert {command.name for command in registry.global_commands()} == {"ping", "shutdown", "admin-deploy"}
    assert {command.name for command in registry.guild_commands()} == {"whois", "info", "talk"}
