"""CLI command handlers for Prompt Library.

Updates:
  v0.3.0 - 2026-10-18 - Add import command with interactive conflict resolution.
  v0.2.0 - 2026-10-17 - Add note commands and token estimation.
  v0.1.0 - 2026-10-16 - Initial prompt listing, rating, and export commands.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from core import (
    ConflictDecision,
    ExportAborted,
    ImportMode,
    MergeFailed,
    PromptLibraryError,
    SnapshotRejected,
    describe_result,
    estimate_tokens,
    keep_existing,
    looks_like_code,
    overwrite_existing,
)

from .utils import describe_prompt, format_estimate, format_timestamp_ms, print_and_log

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from config import LibrarySettings
    from core import ConflictResolver, PromptLibrary
    from models.prompt_model import Prompt

CommandHandler = Callable[["PromptLibrary | None", argparse.Namespace, logging.Logger], int]

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_SETTINGS = 2
EXIT_STORAGE = 3
EXIT_SNAPSHOT_REJECTED = 4
EXIT_EXPORT_ABORTED = 5
EXIT_MERGE_FAILED = 6


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_library: bool = True


def exit_code_for(exc: PromptLibraryError) -> int:
    """Map a library error to the CLI exit status."""
    if isinstance(exc, SnapshotRejected):
        return EXIT_SNAPSHOT_REJECTED
    if isinstance(exc, ExportAborted):
        return EXIT_EXPORT_ABORTED
    if isinstance(exc, MergeFailed):
        return EXIT_MERGE_FAILED
    return EXIT_FAILURE


def apply_settings_defaults(args: argparse.Namespace, settings: LibrarySettings) -> None:
    """Fill unset command options from *settings*."""
    if getattr(args, "export_dir", None) is None:
        args.export_dir = settings.export_dir
    if getattr(args, "mode", None) is None:
        args.mode = settings.default_import_mode
    if getattr(args, "on_conflict", None) is None:
        args.on_conflict = settings.conflict_policy


def interactive_resolver(
    prompt_fn: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> ConflictResolver:
    """Return a resolver that asks about each duplicate prompt.

    Anything other than ``y``/``yes`` keeps the existing prompt, as does
    end of input.
    """

    def _decide(existing: Prompt, incoming: Prompt) -> ConflictDecision:
        output(f"Prompt {existing.id} already exists.")
        output(f"  current:  {existing.title}")
        output(f"  incoming: {incoming.title}")
        try:
            answer = prompt_fn("Overwrite the current prompt? [y/N]: ")
        except EOFError:
            return ConflictDecision.KEEP
        if answer.strip().lower() in {"y", "yes"}:
            return ConflictDecision.OVERWRITE
        return ConflictDecision.KEEP

    return _decide


def resolver_for_policy(
    policy: str,
    logger: logging.Logger,
    *,
    interactive: bool | None = None,
) -> ConflictResolver:
    """Return the conflict resolver matching *policy*."""
    if policy == "overwrite":
        return overwrite_existing
    if policy == "keep":
        return keep_existing
    if interactive is None:
        interactive = sys.stdin.isatty()
    if not interactive:
        logger.warning("stdin is not interactive; keeping existing prompts on conflict")
        return keep_existing
    return interactive_resolver()


def _require_library(library: PromptLibrary | None) -> PromptLibrary:
    if library is None:
        raise ValueError("Prompt Library is required for this command.")
    return library


def _read_text_argument(args: argparse.Namespace) -> str | None:
    file_path = getattr(args, "file", None)
    if file_path is not None:
        return Path(file_path).expanduser().read_text(encoding="utf-8")
    return getattr(args, "text", None) or getattr(args, "content", None)


def run_add(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    content = _read_text_argument(args)
    if not content:
        print_and_log(logger, logging.ERROR, "Prompt content is required (argument or --file).")
        return EXIT_FAILURE
    prompt = library.add_prompt(args.title, content, args.model)
    print(prompt.id)
    estimate = prompt.metadata.token_estimate if prompt.metadata is not None else None
    print(f"Estimated size: {format_estimate(estimate)}")
    return EXIT_OK


def run_list(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del args
    library = _require_library(library)
    prompts = library.list_prompts()
    if not prompts:
        print_and_log(logger, logging.INFO, "No prompts stored.")
        return EXIT_OK
    for prompt in prompts:
        print(describe_prompt(prompt))
    return EXIT_OK


def run_rate(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    prompt = library.set_rating(args.prompt_id, args.rating)
    label = "cleared" if prompt.rating is None else f"set to {prompt.rating}"
    print_and_log(logger, logging.INFO, f"Rating for {prompt.id} {label}")
    return EXIT_OK


def run_delete(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    library.delete_prompt(args.prompt_id)
    print_and_log(logger, logging.INFO, f"Deleted prompt {args.prompt_id}")
    return EXIT_OK


def run_note_add(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del logger
    library = _require_library(library)
    note = library.add_note(args.prompt_id, args.text)
    print(note.note_id)
    return EXIT_OK


def run_note_list(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    notes = library.list_notes(args.prompt_id)
    if not notes:
        print_and_log(logger, logging.INFO, f"No notes for prompt {args.prompt_id}.")
        return EXIT_OK
    for note in notes:
        edited = " (edited)" if note.updated_at > note.created_at else ""
        print(f"{note.note_id}  {format_timestamp_ms(note.created_at)}{edited}")
        print(f"  {note.text}")
    return EXIT_OK


def run_note_edit(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    library.update_note(args.prompt_id, args.note_id, args.text)
    print_and_log(logger, logging.INFO, f"Updated note {args.note_id}")
    return EXIT_OK


def run_note_delete(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    library.delete_note(args.prompt_id, args.note_id)
    print_and_log(logger, logging.INFO, f"Deleted note {args.note_id}")
    return EXIT_OK


def run_estimate(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    del library
    text = _read_text_argument(args)
    if not text or not text.strip():
        print_and_log(logger, logging.ERROR, "Text to estimate is required (argument or --file).")
        return EXIT_FAILURE
    is_code = args.is_code if args.is_code is not None else looks_like_code(text)
    estimate = estimate_tokens(text, is_code)
    kind = "code" if is_code else "prose"
    print(f"{format_estimate(estimate)} [{kind}]")
    return EXIT_OK


def run_export(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    path = library.export_to(Path(args.export_dir))
    print_and_log(logger, logging.INFO, f"Library exported to {path}")
    return EXIT_OK


def run_import(
    library: PromptLibrary | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    library = _require_library(library)
    mode = ImportMode(args.mode)
    decide = resolver_for_policy(args.on_conflict, logger)
    result = library.import_from(Path(args.path), mode, decide)
    print_and_log(logger, logging.INFO, describe_result(result))
    return EXIT_OK


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    "add": CommandSpec(run_add),
    "list": CommandSpec(run_list),
    "rate": CommandSpec(run_rate),
    "delete": CommandSpec(run_delete),
    "note-add": CommandSpec(run_note_add),
    "note-list": CommandSpec(run_note_list),
    "note-edit": CommandSpec(run_note_edit),
    "note-delete": CommandSpec(run_note_delete),
    "estimate": CommandSpec(run_estimate, requires_library=False),
    "export": CommandSpec(run_export),
    "import": CommandSpec(run_import),
}


__all__ = [
    "COMMAND_SPECS",
    "CommandSpec",
    "EXIT_EXPORT_ABORTED",
    "EXIT_FAILURE",
    "EXIT_MERGE_FAILED",
    "EXIT_OK",
    "EXIT_SETTINGS",
    "EXIT_SNAPSHOT_REJECTED",
    "EXIT_STORAGE",
    "apply_settings_defaults",
    "exit_code_for",
    "interactive_resolver",
    "resolver_for_policy",
]
