"""naplesbot: a py-cord command and event dispatcher backed by MySQL."""

__version__ = "0.1.0"
