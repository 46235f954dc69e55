"""Snapshot codec tests.

Updates:
  v0.3.0 - 2026-10-19 - Cover export refusing blank or duplicate live notes.
  v0.2.0 - 2026-10-18 - Cover export file naming and writing.
  v0.1.0 - 2026-10-16 - Cover encode/decode, statistics, and rejection paths.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

import pytest

from core.exceptions import ExportAborted, ParseError, SnapshotInvalid
from core.library_store import LibraryStore
from core.repository import InMemoryKeyValueStore
from core.snapshot_codec import (
    compute_stats,
    decode,
    dumps,
    encode,
    export_filename,
    write_export,
)
from models.prompt_model import Confidence, Prompt, PromptMetadata, TokenEstimate
from models.prompt_note import PromptNote

_EXPORTED = datetime(2024, 5, 2, 8, 30, 15, 250000, tzinfo=UTC)


def _make_prompt(prompt_id: str, *, rating: int | None = None, model: str = "gpt-4o") -> Prompt:
    return Prompt(
        id=prompt_id,
        title=f"Prompt {prompt_id}",
        content="hello world",
        created_at=1714564800000,
        rating=rating,
        metadata=PromptMetadata(
            model=model,
            created_at="2024-05-01T12:00:00.000Z",
            updated_at="2024-05-01T12:00:00.000Z",
            token_estimate=TokenEstimate(2, 3, Confidence.HIGH),
        ),
    )


def _make_note(note_id: str, prompt_id: str) -> PromptNote:
    return PromptNote(
        note_id=note_id,
        prompt_id=prompt_id,
        text=f"note {note_id}",
        created_at=1714564800000,
        updated_at=1714564800000,
    )


def _store(*prompts: Prompt) -> LibraryStore:
    store = LibraryStore(InMemoryKeyValueStore())
    store.prompts = list(prompts)
    return store


def test_compute_stats_counts_unrated_as_zero() -> None:
    stats = compute_stats(
        [_make_prompt("a", rating=5), _make_prompt("b", rating=None), _make_prompt("c", rating=2)]
    )
    assert stats.total_prompts == 3
    assert stats.average_rating == 2.33
    assert stats.most_used_model == "gpt-4o"


def test_compute_stats_empty_library() -> None:
    stats = compute_stats([])
    assert stats.to_record() == {"totalPrompts": 0, "averageRating": 0.0, "mostUsedModel": None}


def test_compute_stats_breaks_model_ties_by_first_seen() -> None:
    stats = compute_stats(
        [
            _make_prompt("a", model="claude"),
            _make_prompt("b", model="gpt-4o"),
            _make_prompt("c", model="gpt-4o"),
            _make_prompt("d", model="claude"),
        ]
    )
    assert stats.most_used_model == "claude"


def test_encode_builds_versioned_snapshot() -> None:
    store = _store(_make_prompt("p1", rating=4))
    store.notes = {"p1": [_make_note("n1", "p1")]}
    snapshot = encode(store, clock=lambda: _EXPORTED)
    assert snapshot.version == 1
    assert snapshot.exported_at == "2024-05-02T08:30:15.250Z"
    assert snapshot.stats.total_prompts == 1
    assert snapshot.stats.average_rating == 4.0
    snapshot.prompts[0].title = "changed"
    assert store.prompts[0].title == "Prompt p1"


def test_encode_excludes_orphan_note_groups() -> None:
    store = _store(_make_prompt("p1"))
    store.notes = {"p1": [_make_note("n1", "p1")], "gone": [_make_note("n2", "gone")]}
    snapshot = encode(store, clock=lambda: _EXPORTED)
    assert set(snapshot.notes) == {"p1"}


def test_encode_aborts_on_invalid_live_prompt() -> None:
    broken = _make_prompt("bad")
    assert broken.metadata is not None
    broken.metadata.updated_at = "2020-01-01T00:00:00.000Z"
    store = _store(_make_prompt("p1"), broken)
    with pytest.raises(ExportAborted) as excinfo:
        encode(store)
    assert excinfo.value.prompt_id == "bad"


@pytest.mark.parametrize("text", ["", "   "])
def test_encode_aborts_on_blank_live_note(text: str) -> None:
    store = _store(_make_prompt("p1"))
    blank = _make_note("n2", "p1")
    blank.text = text
    store.notes = {"p1": [_make_note("n1", "p1"), blank]}
    with pytest.raises(ExportAborted) as excinfo:
        encode(store)
    assert excinfo.value.prompt_id == "p1"
    assert excinfo.value.reason == "invalid note"


def test_encode_aborts_on_duplicate_live_note_ids() -> None:
    store = _store(_make_prompt("p1"))
    store.notes = {"p1": [_make_note("n1", "p1"), _make_note("n1", "p1")]}
    with pytest.raises(ExportAborted):
        encode(store)


def test_dumps_and_decode_preserve_prompts_and_notes() -> None:
    store = _store(_make_prompt("p1", rating=3), _make_prompt("p2"))
    store.notes = {"p1": [_make_note("n1", "p1"), _make_note("n2", "p1")]}
    data = dumps(encode(store, clock=lambda: _EXPORTED))

    payload = json.loads(data.decode("utf-8"))
    assert payload["stats"] == {"totalPrompts": 2, "averageRating": 1.5, "mostUsedModel": "gpt-4o"}
    assert payload["prompts"][1]["rating"] is None

    restored = decode(data)
    assert restored.prompts == store.prompts
    assert restored.notes == store.notes
    assert restored.exported_at == "2024-05-02T08:30:15.250Z"


def test_decode_recomputes_stats() -> None:
    payload = {
        "version": 1,
        "exportedAt": "2024-05-02T08:30:15.250Z",
        "stats": {"totalPrompts": 99, "averageRating": 5, "mostUsedModel": "fake"},
        "prompts": [_make_prompt("p1", rating=2).to_record()],
        "notes": {},
    }
    snapshot = decode(json.dumps(payload))
    assert snapshot.stats.total_prompts == 1
    assert snapshot.stats.most_used_model == "gpt-4o"


@pytest.mark.parametrize("data", [b"{not json", b"\xff\xfe\x00", "", "[1, 2"])
def test_decode_raises_parse_error(data: bytes | str) -> None:
    with pytest.raises(ParseError):
        decode(data)


def test_decode_rejects_future_version() -> None:
    with pytest.raises(SnapshotInvalid) as excinfo:
        decode(json.dumps({"version": 2, "prompts": [], "notes": {}}))
    assert excinfo.value.reason == "unsupported version 2"


def test_export_filename_replaces_separators() -> None:
    assert export_filename(_EXPORTED) == "prompt-library-export-2024-05-02T08-30-15-250Z.json"


def test_write_export_creates_file(tmp_path: Path) -> None:
    store = _store(_make_prompt("p1"))
    target = write_export(store, tmp_path / "exports", clock=lambda: _EXPORTED)
    assert target.name == "prompt-library-export-2024-05-02T08-30-15-250Z.json"
    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["exportedAt"] == "2024-05-02T08:30:15.250Z"
    assert [prompt["id"] for prompt in payload["prompts"]] == ["p1"]
