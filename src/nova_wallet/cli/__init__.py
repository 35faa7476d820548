"""Command-line interface for the Nova wallet."""
