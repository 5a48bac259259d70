"""Argument parser for the PromptVault CLI.

Updates:
  v0.2.0 - 2026-10-02 - Add sync and cache-info maintenance commands.
  v0.1.0 - 2026-09-07 - Initial list/search/show/delete/exports commands.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    """Return the configured argument parser for the ``pv`` command."""
    parser = argparse.ArgumentParser(
        prog="pv",
        description="Manage prompts stored as GitHub gists with an offline cache.",
    )
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )
    parser.add_argument(
        "--force-remote",
        action="store_true",
        help="Fail instead of reading the local cache when GitHub is unreachable.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging when no logging configuration file is used.",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("list", help="List every prompt in your collection (default).")

    search_parser = subparsers.add_parser(
        "search",
        help="Find prompts whose name, author, or id contains a keyword.",
    )
    search_parser.add_argument("keyword", type=str, help="Case-insensitive search text.")

    show_parser = subparsers.add_parser("show", help="Print the raw content of a prompt.")
    show_parser.add_argument("prompt_id", type=str, help="Gist id of the prompt.")

    delete_parser = subparsers.add_parser(
        "delete",
        help="Delete prompts whose gist id equals or whose file name contains a keyword.",
    )
    delete_parser.add_argument("keyword", type=str, help="Gist id or file name fragment.")

    subparsers.add_parser("exports", help="List prompts published as public gists.")
    subparsers.add_parser(
        "sync",
        help="Copy the remote prompt index into the local cache unchanged.",
    )
    subparsers.add_parser("cache-info", help="Show local cache statistics.")
    subparsers.add_parser("print-settings", help="Print resolved settings and exit.")

    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the ``pv`` command."""
    return build_parser().parse_args(argv)
