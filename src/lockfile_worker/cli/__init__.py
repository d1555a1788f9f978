"""CLI module - Command-line interface components."""

from lockfile_worker.cli.main import main
from lockfile_worker.cli.parser import build_parser, parse_arguments

__all__ = [
    "build_parser",
    "main",
    "parse_arguments",
]
