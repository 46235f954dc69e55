"""Lightweight integration checks for the main module and CLI commands.

Updates:
  v0.2.1 - 2026-10-19 - Cover malformed token confidence in imported snapshots.
  v0.2.0 - 2026-10-18 - Cover import exit codes and interactive conflict resolution.
  v0.1.0 - 2026-10-17 - Cover prompt, note, estimate, and export commands.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest
from pytest import CaptureFixture, MonkeyPatch

import main
from cli.commands import interactive_resolver, resolver_for_policy
from cli.parser import parse_args
from core import ConflictDecision, MergeFailed, PromptLibrary, SQLiteKeyValueStore, keep_existing
from core.library_store import PROMPTS_KEY
from models.prompt_model import Prompt


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: MonkeyPatch, tmp_path: Path) -> None:
    for var in (
        "PROMPT_LIBRARY_CONFIG_JSON",
        "PROMPT_LIBRARY_STORAGE_PATH",
        "PROMPT_LIBRARY_CONFLICT_POLICY",
        "PROMPT_LIBRARY_DEFAULT_IMPORT_MODE",
        "PROMPT_LIBRARY_EXPORT_DIR",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("PROMPT_LIBRARY_ENV_FILE", "")
    monkeypatch.chdir(tmp_path)


def _run(capsys: CaptureFixture[str], *argv: str) -> tuple[int, str]:
    code = main.main(list(argv))
    return code, capsys.readouterr().out


def _stored_prompt(prompt_id: str, **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": prompt_id,
        "title": f"Prompt {prompt_id}",
        "content": "hello world",
        "createdAt": 1714564800000,
        "rating": None,
        "metadata": {
            "model": "gpt-4o",
            "createdAt": "2024-05-01T12:00:00.000Z",
            "updatedAt": "2024-05-01T12:00:00.000Z",
            "tokenEstimate": {"min": 2, "max": 3, "confidence": "high"},
        },
    }
    record.update(overrides)
    return record


def _snapshot_file(path: Path, prompts: list[dict[str, Any]]) -> Path:
    payload = {
        "version": 1,
        "exportedAt": "2024-05-02T08:00:00.000Z",
        "prompts": prompts,
        "notes": {},
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_parse_args_defaults_leave_settings_driven_options_unset() -> None:
    args = parse_args(["import", "dump.json"])
    assert args.mode is None
    assert args.on_conflict is None
    assert args.storage is None


def test_no_command_prints_help(capsys: CaptureFixture[str]) -> None:
    code, out = _run(capsys)
    assert code == 1
    assert "usage:" in out


def test_print_settings(capsys: CaptureFixture[str]) -> None:
    code, out = _run(capsys, "--print-settings")
    assert code == 0
    assert "Conflict policy: ask" in out


def test_invalid_settings_exit_code(monkeypatch: MonkeyPatch, capsys: CaptureFixture[str]) -> None:
    monkeypatch.setenv("PROMPT_LIBRARY_CONFLICT_POLICY", "sometimes")
    code, _ = _run(capsys, "list")
    assert code == 2


def test_estimate_does_not_open_storage(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    code, out = _run(capsys, "estimate", "hello world")
    assert code == 0
    assert out.strip() == "2-3 tokens (high) [prose]"
    assert not (tmp_path / "data").exists()


def test_estimate_forces_code_mode(capsys: CaptureFixture[str]) -> None:
    code, out = _run(capsys, "estimate", "--code", "hello world")
    assert code == 0
    assert out.strip() == "3-4 tokens (high) [code]"


def test_prompt_and_note_commands(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    storage = str(tmp_path / "library.db")
    code, out = _run(
        capsys, "--storage", storage, "add", "Greeting", "hello world", "--model", "gpt-4o"
    )
    assert code == 0
    prompt_id = out.splitlines()[0]

    assert _run(capsys, "--storage", storage, "rate", prompt_id, "4")[0] == 0
    code, out = _run(capsys, "--storage", storage, "list")
    assert code == 0
    assert "Greeting" in out and "rating:4/5" in out

    code, out = _run(capsys, "--storage", storage, "note-add", prompt_id, "remember")
    assert code == 0
    note_id = out.strip()
    code, out = _run(capsys, "--storage", storage, "note-list", prompt_id)
    assert "remember" in out

    assert _run(capsys, "--storage", storage, "note-edit", prompt_id, note_id, "updated")[0] == 0
    assert _run(capsys, "--storage", storage, "note-delete", prompt_id, note_id)[0] == 0
    assert _run(capsys, "--storage", storage, "delete", prompt_id)[0] == 0
    code, out = _run(capsys, "--storage", storage, "list")
    assert "No prompts stored." in out


def test_missing_prompt_exit_code(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    code, _ = _run(capsys, "--storage", str(tmp_path / "library.db"), "rate", "ghost", "3")
    assert code == 1


def test_export_and_import_commands(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    source = str(tmp_path / "source.db")
    _run(capsys, "--storage", source, "add", "Greeting", "hello world", "--model", "gpt-4o")
    code, _ = _run(capsys, "--storage", source, "export", "--dir", str(tmp_path / "out"))
    assert code == 0
    exported = list((tmp_path / "out").glob("prompt-library-export-*.json"))
    assert len(exported) == 1

    target = str(tmp_path / "target.db")
    code, out = _run(
        capsys, "--storage", target, "import", str(exported[0]), "--on-conflict", "keep"
    )
    assert code == 0
    assert "added 1" in out


def test_import_rejected_snapshot_exit_code(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"version": 2, "prompts": [], "notes": {}}), encoding="utf-8")
    code, _ = _run(capsys, "--storage", str(tmp_path / "library.db"), "import", str(bad))
    assert code == 4


def test_import_malformed_confidence_exit_code(
    tmp_path: Path, capsys: CaptureFixture[str]
) -> None:
    prompt = _stored_prompt("p1")
    prompt["metadata"]["tokenEstimate"]["confidence"] = []
    snapshot = _snapshot_file(tmp_path / "dump.json", [prompt])
    code, _ = _run(capsys, "--storage", str(tmp_path / "library.db"), "import", str(snapshot))
    assert code == 4


def test_export_aborted_exit_code(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    db_path = tmp_path / "library.db"
    broken = _stored_prompt("p1")
    broken["metadata"]["updatedAt"] = "2020-01-01T00:00:00.000Z"
    SQLiteKeyValueStore(db_path).set(PROMPTS_KEY, json.dumps([broken]).encode("utf-8"))

    code, _ = _run(capsys, "--storage", str(db_path), "export", "--dir", str(tmp_path / "out"))
    assert code == 5


def test_merge_failure_exit_code(
    monkeypatch: MonkeyPatch,
    tmp_path: Path,
    capsys: CaptureFixture[str],
) -> None:
    def _fail(self: PromptLibrary, *args: Any, **kwargs: Any) -> None:
        raise MergeFailed("Import failed and was rolled back: boom", rolled_back=True)

    monkeypatch.setattr(PromptLibrary, "import_from", _fail)
    snapshot = _snapshot_file(tmp_path / "dump.json", [_stored_prompt("p1")])
    code, _ = _run(capsys, "--storage", str(tmp_path / "library.db"), "import", str(snapshot))
    assert code == 6


def test_import_replace_mode(tmp_path: Path, capsys: CaptureFixture[str]) -> None:
    storage = str(tmp_path / "library.db")
    _run(capsys, "--storage", storage, "add", "Old", "hello world", "--model", "gpt-4o")
    snapshot = _snapshot_file(tmp_path / "dump.json", [_stored_prompt("p1")])

    code, out = _run(capsys, "--storage", storage, "import", str(snapshot), "--mode", "replace")

    assert code == 0
    assert "Import complete (replace): 1 prompt(s)" in out
    library = PromptLibrary.open(SQLiteKeyValueStore(storage))
    assert [prompt.id for prompt in library.list_prompts()] == ["p1"]


def _prompt(prompt_id: str, title: str) -> Prompt:
    return Prompt(id=prompt_id, title=title, content="x", created_at=0)


def test_interactive_resolver_answers() -> None:
    answers = iter(["y", "", "no"])
    shown: list[str] = []
    resolver = interactive_resolver(lambda _: next(answers), shown.append)
    existing, incoming = _prompt("p1", "Old"), _prompt("p1", "New")

    assert resolver(existing, incoming) is ConflictDecision.OVERWRITE
    assert resolver(existing, incoming) is ConflictDecision.KEEP
    assert resolver(existing, incoming) is ConflictDecision.KEEP
    assert "  incoming: New" in shown


def test_interactive_resolver_keeps_on_eof() -> None:
    def _eof(_: str) -> str:
        raise EOFError

    resolver = interactive_resolver(_eof, lambda _: None)
    assert resolver(_prompt("p1", "a"), _prompt("p1", "b")) is ConflictDecision.KEEP


def test_ask_policy_without_terminal_keeps_existing() -> None:
    logger = logging.getLogger("prompt_library.cli")
    assert resolver_for_policy("ask", logger, interactive=False) is keep_existing
