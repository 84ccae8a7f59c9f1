"""
Directory scanning for command and event plugins.

A plugin is a ``.py`` file whose name does not start with ``_``, importable as
a module of the given package. Each one is loaded as a py-cord extension: its
``setup(bot)`` hands a definition to the matching registry, which validates it.
A plugin that fails to import, lacks ``setup`` or exports the wrong type is
logged and skipped; the scan carries on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List

import discord

from naplesbot.util.logger import get_logger

logger = get_logger("plugin_loader")


class PluginLoadError(Exception):
    """A plugin handed a registry something that is not a valid definition."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


@dataclass
class LoadReport:
    """Outcome of scanning one directory, keyed by extension name."""

    loaded: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


def is_candidate(path: Path) -> bool:
    return path.is_file() and path.suffix == ".py" and not path.name.startswith("_")


def iter_candidates(root: Path) -> Iterator[Path]:
    for path in sorted(root.rglob("*.py")):
        if is_candidate(path) and not any(part.startswith("_") for part in path.relative_to(root).parts[:-1]):
            yield path


def module_name_for(path: Path, root: Path, package: str) -> str:
    """Dotted module name for ``path`` relative to ``root``, prefixed by ``package``."""
    relative = path.relative_to(root).with_suffix("")
    return ".".join((package, *relative.parts))


def failure_reason(error: BaseException) -> str:
    original = getattr(error, "original", None)
    if original is not None:
        return f"{type(original).__name__}: {original}"
    return str(error)


def load_extensions(bot: discord.Bot, root: Path, package: str) -> LoadReport:
    """
    Load every plugin under ``root`` as an extension of ``bot``.

    Files load in sorted path order, so when two plugins register the same
    command name the later path wins.
    """
    report = LoadReport()
    if not root.is_dir():
        logger.warning("[PLUGINS] Directory %s does not exist, nothing to load", root)
        return report

    for path in iter_candidates(root):
        name = module_name_for(path, root, package)
        outcome = bot.load_extension(name, store=True).get(name)
        if outcome is True:
            report.loaded.append(name)
            continue
        reason = failure_reason(outcome) if isinstance(outcome, BaseException) else "extension did not load"
        report.failures[name] = reason
        logger.warning("[PLUGINS] Skipped %s: %s", path.name, reason)

    logger.info("[PLUGINS] Loaded %d of %d plugin(s) from %s", len(report.loaded), len(report.loaded) + len(report.failures), root)
    return report
