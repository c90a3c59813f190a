"""Command-line interface for the brain tools."""
