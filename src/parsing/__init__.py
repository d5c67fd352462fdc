"""Payload parsers."""
