"""Logging setup, formatters and contextual fields."""
