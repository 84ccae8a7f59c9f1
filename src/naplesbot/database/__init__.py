"""Pooled MySQL access."""
