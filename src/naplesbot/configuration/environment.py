"""Environment variable helpers shared by the configuration modules."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable

from dotenv import load_dotenv


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or malformed."""

    def __init__(self, message: str, missing: Iterable[str] = ()) -> None:
        super().__init__(message)
        self.missing = tuple(missing)


def load_environment(base_dir: Path) -> None:
    """Load ``base_dir/.env`` into ``os.environ`` without overriding set values."""
    load_dotenv(dotenv_path=base_dir / ".env")


def require_variables(names: Iterable[str], scope: str) -> Dict[str, str]:
    """Return the requested variables, raising if any of them is unset or blank.

    All missing names are reported at once so a fresh deployment can be fixed
    in a single pass.
    """
    names = list(names)
    missing = [name for name in names if not os.getenv(name, "").strip()]
    if missing:
        raise ConfigurationError(
            f"Missing {scope} environment variables: {', '.join(missing)}",
            missing=missing,
        )
    return {name: os.environ[name].strip() for name in names}
