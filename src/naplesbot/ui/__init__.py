"""Embed builders."""
