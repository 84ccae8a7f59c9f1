"""
Configuration management for naplesbot.

- **app_configuration.py**: YAML loader for static bot settings (bot owners,
  per-guild permission role tables, log channels, presence rotation, cooldown
  housekeeping, pool sizing).
- **discord_config.py** / **database_config.py**: secrets and connection values
  read from the environment (``.env`` is loaded at startup by python-dotenv).
"""
