"""Resource key resolution and grouping."""
