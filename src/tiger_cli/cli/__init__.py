"""Command line interface for the Tiger CLI."""
