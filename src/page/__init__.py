"""Page snapshot sources."""
