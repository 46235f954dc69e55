"""Schema validator tests for prompts, notes, and snapshots.

Updates:
  v0.3.0 - 2026-10-19 - Cover rating range checks and non-string token confidence.
  v0.2.0 - 2026-10-17 - Cover duplicate identifier rejection and orphan note groups.
  v0.1.0 - 2026-10-16 - Cover prompt and note shape checks.
"""

from __future__ import annotations

from typing import Any

import pytest
from pytest import LogCaptureFixture

from core.exceptions import SnapshotInvalid
from core.schema_validator import validate_note, validate_prompt, validate_snapshot


def _metadata() -> dict[str, Any]:
    return {
        "model": "gpt-4o",
        "createdAt": "2024-05-01T12:00:00.000Z",
        "updatedAt": "2024-05-01T12:30:00.000Z",
        "tokenEstimate": {"min": 2, "max": 3, "confidence": "high"},
    }


def _prompt(prompt_id: str = "p1", **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": prompt_id,
        "title": "Greeting",
        "content": "hello world",
        "createdAt": 1714564800000,
        "rating": 4,
        "metadata": _metadata(),
    }
    record.update(overrides)
    return record


def _note(note_id: str, prompt_id: str, **overrides: Any) -> dict[str, Any]:
    record: dict[str, Any] = {
        "noteId": note_id,
        "promptId": prompt_id,
        "text": "Works best with a system message",
        "createdAt": 1714564800000,
        "updatedAt": 1714564900000,
    }
    record.update(overrides)
    return record


def _snapshot(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "version": 1,
        "exportedAt": "2024-05-02T08:00:00.000Z",
        "stats": {"totalPrompts": 1, "averageRating": 4, "mostUsedModel": "gpt-4o"},
        "prompts": [_prompt()],
        "notes": {"p1": [_note("n1", "p1")]},
    }
    payload.update(overrides)
    return payload


def test_validate_prompt_accepts_complete_record() -> None:
    assert validate_prompt(_prompt())


def test_validate_prompt_accepts_unrated_prompt_without_metadata() -> None:
    record = _prompt(rating=None)
    del record["metadata"]
    assert validate_prompt(record)


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": ""},
        {"id": 7},
        {"title": None},
        {"content": 12},
        {"createdAt": "yesterday"},
        {"createdAt": True},
        {"rating": "five"},
        {"rating": 9},
        {"rating": -1},
        {"rating": 2.5},
        {"metadata": {**_metadata(), "model": ""}},
        {"metadata": {**_metadata(), "updatedAt": "2024-04-01T00:00:00.000Z"}},
    ],
)
def test_validate_prompt_rejects_bad_fields(overrides: dict[str, Any]) -> None:
    assert not validate_prompt(_prompt(**overrides))


def test_validate_prompt_rejects_non_mapping() -> None:
    assert not validate_prompt(["p1"])


@pytest.mark.parametrize("rating", [0, 5, 3.0])
def test_validate_prompt_accepts_whole_ratings_in_range(rating: float) -> None:
    assert validate_prompt(_prompt(rating=rating))


@pytest.mark.parametrize("confidence", [[], {}, None, 3])
def test_validate_prompt_rejects_non_string_confidence(confidence: Any) -> None:
    metadata = _metadata()
    metadata["tokenEstimate"] = {"min": 2, "max": 3, "confidence": confidence}
    assert not validate_prompt(_prompt(metadata=metadata))


@pytest.mark.parametrize("confidence", [[], {}])
def test_validate_snapshot_reports_unhashable_confidence(confidence: Any) -> None:
    metadata = _metadata()
    metadata["tokenEstimate"] = {"min": 2, "max": 3, "confidence": confidence}
    with pytest.raises(SnapshotInvalid) as excinfo:
        validate_snapshot(_snapshot(prompts=[_prompt(metadata=metadata)]))
    assert "index 0" in excinfo.value.reason


def test_validate_note_checks_owner_and_text() -> None:
    assert validate_note(_note("n1", "p1"), "p1")
    assert not validate_note(_note("n1", "p2"), "p1")
    assert not validate_note(_note("n1", "p1", text="   "), "p1")
    assert not validate_note(_note("", "p1"), "p1")


def test_validate_note_timestamps_are_optional_but_ordered() -> None:
    record = _note("n1", "p1")
    del record["createdAt"]
    del record["updatedAt"]
    assert validate_note(record, "p1")
    assert not validate_note(_note("n1", "p1", updatedAt=1), "p1")
    assert not validate_note(_note("n1", "p1", createdAt="soon"), "p1")


def test_validate_snapshot_returns_typed_snapshot() -> None:
    snapshot = validate_snapshot(_snapshot())
    assert snapshot.version == 1
    assert snapshot.prompt_ids() == ["p1"]
    assert [note.note_id for note in snapshot.notes["p1"]] == ["n1"]
    assert snapshot.dropped_groups == []


@pytest.mark.parametrize(
    ("payload", "fragment"),
    [
        ([], "root"),
        ({"prompts": [], "notes": {}}, "version"),
        ({"version": "1", "prompts": [], "notes": {}}, "version"),
        ({"version": True, "prompts": [], "notes": {}}, "version"),
        ({"version": 2, "prompts": [], "notes": {}}, "unsupported version 2"),
    ],
)
def test_validate_snapshot_rejects_bad_envelope(payload: Any, fragment: str) -> None:
    with pytest.raises(SnapshotInvalid) as excinfo:
        validate_snapshot(payload)
    assert fragment in excinfo.value.reason


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"prompts": {"p1": {}}}, "prompts must be an array"),
        ({"prompts": [_prompt(), {"id": "p2"}]}, "index 1"),
        ({"prompts": [_prompt(), _prompt()]}, "duplicate prompt id"),
        ({"notes": []}, "notes must be an object"),
        ({"notes": {"p1": {"n1": {}}}}, "must be an array"),
        ({"notes": {"p1": [_note("n1", "other")]}}, "invalid note"),
        ({"notes": {"p1": [_note("n1", "p1"), _note("n1", "p1")]}}, "duplicate note id"),
    ],
)
def test_validate_snapshot_rejects_bad_contents(
    overrides: dict[str, Any],
    fragment: str,
) -> None:
    with pytest.raises(SnapshotInvalid) as excinfo:
        validate_snapshot(_snapshot(**overrides))
    assert fragment in excinfo.value.reason


def test_validate_snapshot_drops_orphan_groups(caplog: LogCaptureFixture) -> None:
    payload = _snapshot(
        notes={"p1": [_note("n1", "p1")], "ghost": [_note("n9", "ghost")]},
    )
    with caplog.at_level("WARNING", logger="prompt_library.validation"):
        snapshot = validate_snapshot(payload)
    assert set(snapshot.notes) == {"p1"}
    assert snapshot.dropped_groups == ["ghost"]
    assert "orphan" in caplog.text


def test_validate_snapshot_drops_orphan_group_even_when_malformed() -> None:
    snapshot = validate_snapshot(_snapshot(notes={"ghost": "not a list"}))
    assert snapshot.notes == {}
    assert snapshot.dropped_groups == ["ghost"]
