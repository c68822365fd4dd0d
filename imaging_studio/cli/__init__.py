"""Command-line entry points for imaging-studio."""
