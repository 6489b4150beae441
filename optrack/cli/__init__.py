"""Command-line interface for optrack."""
