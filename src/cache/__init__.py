"""TTL payload cache and its persistent backends."""
