"""Command-line interface for mulch."""
from mulch.cli.main import main

__all__ = ["main"]
