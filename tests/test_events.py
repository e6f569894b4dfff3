"""Tests for hearth.events — event kinds, clock, and the JSON log format."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from hearth.errors import ReplayError
from hearth.events import (
    EVENT_TYPES,
    ExecuteTasksRequested,
    NextTaskSelected,
    SummaryGenerated,
    TaskCompleted,
    TaskCreated,
    TaskExecuted,
    dumps_events,
    event_from_dict,
    event_key,
    event_to_dict,
    loads_events,
    now,
)

T0 = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════════
#  Clock and identity
# ═══════════════════════════════════════════════════════════════════


class TestClock:
    """now() is the only clock events use."""

    def test_now_is_utc(self):
        """Timestamps carry the UTC offset."""
        assert now().tzinfo is not None
        assert now().utcoffset().total_seconds() == 0

    def test_now_strictly_increasing(self):
        """Back-to-back calls never return the same instant."""
        stamps = [now() for _ in range(200)]
        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    def test_default_time_is_set(self):
        """Events get a timestamp when none is given."""
        e1 = TaskCompleted(task_id="A")
        e2 = TaskCompleted(task_id="A")
        assert e1.time < e2.time


class TestEventKey:
    """Merge identity is (kind, time)."""

    def test_key_uses_type_and_time(self):
        """Key pairs the discriminator with the timestamp."""
        e = TaskCompleted(task_id="A", time=T0)
        assert event_key(e) == ("task_completed", T0)

    def test_different_kinds_same_time_differ(self):
        """Two kinds at one instant have distinct keys."""
        a = TaskCompleted(task_id="A", time=T0)
        b = TaskExecuted(task_id="A", time=T0)
        assert event_key(a) != event_key(b)

    def test_registry_covers_every_kind(self):
        """All eight kinds are registered by discriminator."""
        assert set(EVENT_TYPES) == {
            "task_created",
            "task_started",
            "task_completed",
            "execute_tasks_requested",
            "next_task_selected",
            "task_executed",
            "summary_requested",
            "summary_generated",
        }


# ═══════════════════════════════════════════════════════════════════
#  Encoding
# ═══════════════════════════════════════════════════════════════════


class TestEncode:
    """event_to_dict / dumps_events produce the on-disk shape."""

    def test_type_first_and_iso_time(self):
        """The discriminator leads and time is ISO-8601."""
        data = event_to_dict(TaskCreated(task_id="A", title="Alpha", time=T0))
        assert list(data)[0] == "type"
        assert data["type"] == "task_created"
        assert data["time"] == "2025-01-01T09:00:00+00:00"
        assert data["parent_id"] is None

    def test_dumps_is_json_array(self):
        """A log is a pretty-printed JSON array."""
        text = dumps_events([ExecuteTasksRequested(time=T0)])
        assert text.endswith("\n")
        assert json.loads(text) == [
            {"type": "execute_tasks_requested", "time": "2025-01-01T09:00:00+00:00"},
        ]

    def test_empty_task_id_preserved(self):
        """The 'nothing eligible' selection keeps its empty id."""
        data = event_to_dict(NextTaskSelected(task_id="", reason="no eligible tasks", time=T0))
        assert data["task_id"] == ""
        assert event_from_dict(data) == NextTaskSelected(task_id="", reason="no eligible tasks", time=T0)


# ═══════════════════════════════════════════════════════════════════
#  Decoding
# ═══════════════════════════════════════════════════════════════════


class TestDecode:
    """Decoding rejects anything that is not a well-formed record."""

    def test_decodes_full_record(self):
        """Every field survives decoding."""
        data = {
            "type": "task_created",
            "task_id": "B",
            "title": "Beta",
            "description": "desc",
            "parent_id": "A",
            "depends_on": None,
            "time": "2025-01-01T09:00:00+00:00",
        }
        e = event_from_dict(data)
        assert e == TaskCreated(task_id="B", title="Beta", description="desc", parent_id="A", time=T0)

    def test_optional_fields_may_be_absent(self):
        """Fields with defaults fall back when missing."""
        e = event_from_dict({"type": "task_executed", "task_id": "A", "time": "2025-01-01T09:00:00+00:00"})
        assert e == TaskExecuted(task_id="A", result_path="", time=T0)

    def test_naive_time_is_utc(self):
        """A timestamp without offset is read as UTC."""
        e = event_from_dict({"type": "task_completed", "task_id": "A", "time": "2025-01-01T09:00:00"})
        assert e.time == T0

    def test_summary_generated(self):
        """Summary records carry the parent id."""
        e = event_from_dict({
            "type": "summary_generated",
            "parent_task_id": "P",
            "summary_path": ".hearth/results/P.md",
            "time": "2025-01-01T09:00:00+00:00",
        })
        assert isinstance(e, SummaryGenerated)
        assert e.parent_task_id == "P"

    @pytest.mark.parametrize("data", [
        [],
        {"task_id": "A", "time": "2025-01-01T09:00:00+00:00"},
        {"type": "task_exploded", "time": "2025-01-01T09:00:00+00:00"},
        {"type": "task_completed", "time": "2025-01-01T09:00:00+00:00"},
        {"type": "task_completed", "task_id": "A"},
        {"type": "task_completed", "task_id": "A", "time": "yesterday"},
        {"type": "task_completed", "task_id": 7, "time": "2025-01-01T09:00:00+00:00"},
        {"type": "task_created", "task_id": "A", "title": None, "time": "2025-01-01T09:00:00+00:00"},
    ])
    def test_malformed_record_rejected(self, data):
        """Malformed records raise ReplayError."""
        with pytest.raises(ReplayError):
            event_from_dict(data)


class TestLoads:
    """loads_events handles whole documents."""

    def test_blank_is_empty_log(self):
        """Empty and whitespace-only documents are an empty log."""
        assert loads_events("") == []
        assert loads_events("  \n") == []

    def test_invalid_json(self):
        """Garbage raises ReplayError."""
        with pytest.raises(ReplayError, match="not valid JSON"):
            loads_events("[{")

    def test_not_an_array(self):
        """A top-level object is not a log."""
        with pytest.raises(ReplayError, match="array"):
            loads_events('{"type": "task_completed"}')

    def test_preserves_order(self):
        """Records come back in file order."""
        events = [
            TaskCreated(task_id="A", time=T0),
            TaskCompleted(task_id="A", time=now()),
        ]
        assert loads_events(dumps_events(events)) == events
