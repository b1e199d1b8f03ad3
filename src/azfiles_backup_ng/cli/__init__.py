"""Command line interface for azfiles-backup-ng."""

from .dispatcher import create_subcommand_parser, main

__all__ = ["create_subcommand_parser", "main"]
