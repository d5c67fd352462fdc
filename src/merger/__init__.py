"""Result merger and render sinks."""
