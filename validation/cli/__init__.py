"""Command-line entrypoints for walk-forward validation."""
