"""Argument parser for Prompt Library CLI.

Updates:
  v0.2.0 - 2026-10-18 - Add import mode and conflict policy flags.
  v0.1.0 - 2026-10-16 - Initial prompt, rating, and note subcommands.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    """Return the configured argument parser."""
    parser = argparse.ArgumentParser(description="Prompt Library command line")
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
        "--storage",
        type=Path,
        default=None,
        help="SQLite file holding the library (overrides configured storage_path).",
    )

    subparsers = parser.add_subparsers(dest="command")

    add_parser = subparsers.add_parser("add", help="Add a prompt to the library.")
    add_parser.add_argument("title", type=str, help="Prompt title.")
    add_parser.add_argument(
        "content",
        type=str,
        nargs="?",
        default=None,
        help="Prompt body (omit when using --file).",
    )
    add_parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Read the prompt body from a UTF-8 text file.",
    )
    add_parser.add_argument(
        "--model",
        type=str,
        required=True,
        help="Name of the model the prompt targets.",
    )

    subparsers.add_parser("list", help="List stored prompts with ratings and estimates.")

    rate_parser = subparsers.add_parser("rate", help="Set or clear a prompt rating.")
    rate_parser.add_argument("prompt_id", type=str, help="Prompt identifier.")
    rate_parser.add_argument(
        "rating",
        type=int,
        nargs="?",
        default=None,
        help="Rating between 0 and 5 (omit to clear).",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a prompt and its notes.")
    delete_parser.add_argument("prompt_id", type=str, help="Prompt identifier.")

    note_add_parser = subparsers.add_parser("note-add", help="Attach a note to a prompt.")
    note_add_parser.add_argument("prompt_id", type=str, help="Prompt identifier.")
    note_add_parser.add_argument("text", type=str, help="Note text.")

    note_list_parser = subparsers.add_parser("note-list", help="List a prompt's notes.")
    note_list_parser.add_argument("prompt_id", type=str, help="Prompt identifier.")

    note_edit_parser = subparsers.add_parser("note-edit", help="Replace a note's text.")
    note_edit_parser.add_argument("prompt_id", type=str, help="Prompt identifier.")
    note_edit_parser.add_argument("note_id", type=str, help="Note identifier.")
    note_edit_parser.add_argument("text", type=str, help="Replacement text.")

    note_delete_parser = subparsers.add_parser("note-delete", help="Delete a note.")
    note_delete_parser.add_argument("prompt_id", type=str, help="Prompt identifier.")
    note_delete_parser.add_argument("note_id", type=str, help="Note identifier.")

    estimate_parser = subparsers.add_parser(
        "estimate",
        help="Estimate the token footprint of a text without storing it.",
    )
    estimate_parser.add_argument("text", type=str, nargs="?", default=None, help="Text to size.")
    estimate_parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Read the text from a UTF-8 file.",
    )
    estimate_parser.add_argument(
        "--code",
        dest="is_code",
        action="store_true",
        default=None,
        help="Treat the text as source code.",
    )
    estimate_parser.add_argument(
        "--prose",
        dest="is_code",
        action="store_false",
        help="Treat the text as prose even when it looks like code.",
    )

    export_parser = subparsers.add_parser("export", help="Write a JSON snapshot of the library.")
    export_parser.add_argument(
        "--dir",
        dest="export_dir",
        type=Path,
        default=None,
        help="Destination directory (defaults to the configured export_dir).",
    )

    import_parser = subparsers.add_parser("import", help="Import a JSON snapshot.")
    import_parser.add_argument("path", type=Path, help="Snapshot file to import.")
    import_parser.add_argument(
        "--mode",
        choices=("merge", "replace"),
        default=None,
        help="Merge into or replace the library (defaults to default_import_mode).",
    )
    import_parser.add_argument(
        "--on-conflict",
        dest="on_conflict",
        choices=("ask", "keep", "overwrite"),
        default=None,
        help="Resolution for duplicate prompt ids (defaults to conflict_policy).",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the Prompt Library launcher."""
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args"]
