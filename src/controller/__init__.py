"""Run controller and run context."""
