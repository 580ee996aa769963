"""Command line interface."""

from photofinish.cli.main import cli, main

__all__ = ["cli", "main"]
