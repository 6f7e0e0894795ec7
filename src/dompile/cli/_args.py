"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_project_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --project-root flag for project root override.

    Args:
        parser: ArgumentParser to add the flag to
    """
    parser.add_argument(
        "--project-root",
        type=str,
        help="Override project root path (default: detected from the document path)",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag (repeatable: -v info, -vv debug)."""
    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log progress to stderr (repeat for debug output)",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add the flags every dompile command accepts: --json, --project-root, --verbose."""
    add_json_flag(parser)
    add_project_root_flag(parser)
    add_verbose_flag(parser)


__all__ = [
    "add_json_flag",
    "add_project_root_flag",
    "add_verbose_flag",
    "add_standard_flags",
]
