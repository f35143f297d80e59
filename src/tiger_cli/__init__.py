"""Tiger CLI: credential and connection lifecycle for managed database services."""

__version__ = "0.4.0"
