"""Command-line interface for HERA."""
