"""Slash command modules discovered at startup."""
