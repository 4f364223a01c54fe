"""
CLI module for skipgate.

Provides the command-line interface using Click.
"""

from skipgate.cli.main import cli, main

__all__ = ["main", "cli"]
