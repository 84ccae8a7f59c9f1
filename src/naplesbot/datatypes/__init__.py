"""Typed definitions shared across the bot."""
