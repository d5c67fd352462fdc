"""User-visible transient notices."""
