"""Chunked, throttled fetch scheduling."""
