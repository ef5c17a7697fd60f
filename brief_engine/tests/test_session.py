"""Tests for BriefSession — field writes, lists, role switching, persistence."""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from brief_engine.exceptions import FieldValidationError, UnknownFieldError, UnsavedChangesError
from brief_engine.session import BriefSession
from brief_store.document_store import JsonFileStorage


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _Clock:
    """Deterministic clock: each call advances one second."""

    def __init__(self):
        self.now = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _session(tmp_path: Path = None, **kwargs) -> BriefSession:
    storage = JsonFileStorage(tmp_path) if tmp_path is not None else None
    return BriefSession(storage, clock=_Clock(), **kwargs)


# ---------------------------------------------------------------------------
# update_field
# ---------------------------------------------------------------------------

class TestUpdateField:

    def test_write_marks_dirty_and_stamps(self):
        session = _session()
        before = session.document.updated_at
        session.update_field("project_name", "Spring Lookbook")
        assert session.document.project_name == "Spring Lookbook"
        assert session.is_dirty
        assert session.document.updated_at != before

    def test_unknown_field_rejected(self):
        session = _session()
        with pytest.raises(UnknownFieldError):
            session.update_field("favourite_colour", "blue")
        assert not session.is_dirty

    def test_metadata_not_editable(self):
        with pytest.raises(UnknownFieldError):
            _session().update_field("created_at", "yesterday")

    def test_invalid_value_leaves_document(self):
        session = _session()
        with pytest.raises(FieldValidationError):
            session.update_field("shoot_status", "Maybe")
        assert session.document.shoot_status is None
        assert not session.is_dirty

    def test_last_writer_wins(self):
        session = _session()
        session.update_field("overview", "first")
        session.update_field("overview", "second")
        assert session.document.overview == "second"

    def test_list_write_restamps_order(self):
        session = _session()
        session.update_field("shot_list", [
            {"id": 5, "description": "A", "order": 9},
            {"id": 2, "description": "B", "order": 1},
        ])
        assert [s.order for s in session.document.shot_list] == [1, 2]

    def test_list_write_duplicate_ids_rejected(self):
        session = _session()
        with pytest.raises(FieldValidationError, match="unique"):
            session.update_field("shot_list", [{"id": 1}, {"id": 1}])

    def test_list_write_cannot_revive_removed_id(self):
        session = _session()
        session.add_shot(description="A")
        session.add_shot(description="B")
        session.remove_shot(2)
        with pytest.raises(FieldValidationError, match="removed"):
            session.update_field("shot_list", [{"id": 1}, {"id": 2, "description": "C"}])
        assert [s.id for s in session.document.shot_list] == [1]

    def test_list_write_keeps_live_ids_and_accepts_fresh_ones(self):
        session = _session()
        session.add_shot(description="A")
        session.add_shot(description="B")
        session.remove_shot(2)
        session.update_field("shot_list", [{"id": 1, "description": "A"}, {"id": 5, "description": "E"}])
        assert [s.id for s in session.document.shot_list] == [1, 5]
        assert session.add_shot(description="F").id == 6

    def test_list_write_seeds_allocator(self):
        session = _session()
        session.update_field("shot_list", [{"id": 10, "description": "A"}])
        assert session.add_shot(description="B").id == 11

    def test_role_key_delegates_to_select_role(self):
        session = _session()
        session.update_field("role", "Producer")
        assert session.role == "Producer"


# ---------------------------------------------------------------------------
# role selection
# ---------------------------------------------------------------------------

class TestSelectRole:

    def test_switch_keeps_values_and_resets_step(self):
        session = _session()
        session.select_role("Photographer")
        session.update_field("project_name", "P")
        session.go_to(3)
        session.select_role("Producer")
        assert session.document.project_name == "P"
        assert session.current_step_index == 0
        assert len(session.wizard.steps) == 11

    def test_invalid_role_rejected(self):
        with pytest.raises(FieldValidationError):
            _session().select_role("Director")

    def test_invalid_role_rejected_at_construction(self):
        with pytest.raises(FieldValidationError, match="role"):
            _session(role="Director")

    def test_reselecting_same_role_is_noop(self):
        session = _session()
        session.select_role("Client")
        session.save()
        session.go_to(2)
        session.select_role("Client")
        assert session.current_step_index == 2
        assert not session.is_dirty

    def test_required_fields_follow_role(self):
        session = _session()
        session.select_role("Producer")
        assert "crew" in session.required_fields

    def test_permissions_need_a_role(self):
        session = _session()
        assert not session.has_permission("can_use_ai")
        session.select_role("Client")
        assert session.has_permission("can_use_ai")


# ---------------------------------------------------------------------------
# Ordered lists through the session
# ---------------------------------------------------------------------------

class TestShotList:

    def test_add_reorder_scenario(self):
        session = _session()
        a = session.add_shot(description="A")
        session.add_shot(description="B")
        c = session.add_shot(description="C")
        assert session.reorder_shots(c.id, a.id) is True
        shots = session.document.shot_list
        assert [s.description for s in shots] == ["C", "A", "B"]
        assert [s.order for s in shots] == [1, 2, 3]

    def test_unknown_id_leaves_clean_session(self):
        session = _session()
        session.add_shot(description="A")
        session.save()
        assert session.remove_shot(99) is False
        assert session.reorder_shots(99, 1) is False
        assert session.duplicate_shot(99) is None
        assert not session.is_dirty

    def test_duplicate_returns_copy(self):
        session = _session()
        a = session.add_shot(description="A", notes="n")
        copy = session.duplicate_shot(a.id)
        assert copy.id != a.id
        assert copy.notes == "n"
        assert len(session.document.shot_list) == 2

    def test_update_shot(self):
        session = _session()
        a = session.add_shot(description="A")
        assert session.update_shot(a.id, priority=True) is True
        assert session.document.shot_list[0].priority is True

    def test_update_shot_invalid(self):
        session = _session()
        a = session.add_shot(description="A")
        with pytest.raises(FieldValidationError):
            session.update_shot(a.id, angle="Sideways")

    def test_add_items_all_or_nothing(self):
        session = _session()
        with pytest.raises(FieldValidationError):
            session.add_items("shot_list", [{"description": "ok"}, {"shot_type": "Fisheye"}])
        assert session.document.shot_list == []

    def test_grouped_shots(self):
        session = _session()
        session.add_shot(description="A", category="Hero")
        session.add_shot(description="B")
        assert list(session.grouped_shots()) == ["Hero", "Uncategorized"]

    def test_unknown_list_name(self):
        with pytest.raises(UnknownFieldError):
            _session().add_item("props", {"name": "x"})


class TestBudgetLines:

    def test_total_follows_update(self):
        session = _session()
        item = session.add_item("budget_line_items", {"quantity": 2, "unit_cost": 100})
        assert item.total == 200
        session.update_item("budget_line_items", item.id, {"quantity": 3})
        assert session.document.budget_line_items[0].total == 300


# ---------------------------------------------------------------------------
# Navigation + completion
# ---------------------------------------------------------------------------

class TestNavigation:

    def test_gating_through_session(self):
        session = _session()
        session.select_role("Client")
        assert session.next() is False
        session.update_fields({"client_name": "Ana", "client_email": "ana@example.com"})
        assert session.next() is True

    def test_completion_tracks_document(self):
        session = _session()
        session.select_role("Producer")
        assert session.completion() == 0
        session.update_field("project_name", "P")
        assert session.completion() == 14  # 1 of 7
        assert "project_name" not in session.missing_required_fields()


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class TestPersistence:

    def test_save_clears_dirty_and_records_time(self, tmp_path: Path):
        session = _session(tmp_path)
        session.update_field("project_name", "P")
        session.save()
        assert not session.is_dirty
        assert session.last_saved is not None
        assert session.last_saved >= datetime.fromisoformat(session.document.updated_at)
        assert (tmp_path / "brief-store.json").exists()

    def test_save_without_storage(self):
        session = _session()
        session.update_field("project_name", "P")
        session.save_now()
        assert session.can_leave()

    def test_roundtrip_restores_state(self, tmp_path: Path):
        session = _session(tmp_path)
        session.select_role("Photographer")
        session.add_shot(description="A")
        session.add_shot(description="B")
        session.go_to(2)
        session.save()

        restored = BriefSession.load(JsonFileStorage(tmp_path), clock=_Clock())
        assert restored.role == "Photographer"
        assert restored.current_step_index == 2
        assert [s.description for s in restored.document.shot_list] == ["A", "B"]
        assert not restored.is_dirty

    def test_ids_not_reissued_after_reload(self, tmp_path: Path):
        session = _session(tmp_path)
        session.add_shot(description="A")
        b = session.add_shot(description="B")
        session.remove_shot(b.id)
        session.save()
        restored = BriefSession.load(JsonFileStorage(tmp_path), clock=_Clock())
        assert restored.add_shot(description="C").id == b.id + 1

    def test_corrupt_store_starts_empty(self, tmp_path: Path):
        (tmp_path / "brief-store.json").write_text("{not json", encoding="utf-8")
        session = BriefSession.load(JsonFileStorage(tmp_path))
        assert session.document.project_name is None
        assert session.role is None

    def test_invalid_document_starts_empty(self, tmp_path: Path):
        state = {"document": {"role": "Director"}, "current_step_index": 0}
        (tmp_path / "brief-store.json").write_text(json.dumps(state), encoding="utf-8")
        session = BriefSession.load(JsonFileStorage(tmp_path))
        assert session.role is None

    def test_reset_clears_store(self, tmp_path: Path):
        session = _session(tmp_path)
        session.select_role("Producer")
        session.update_field("project_name", "P")
        session.save()
        session.reset()
        assert session.document.project_name is None
        assert session.role is None
        assert session.current_step_index == 0
        assert not (tmp_path / "brief-store.json").exists()


class TestLifecycle:

    def test_close_refused_when_dirty(self):
        session = _session()
        session.update_field("project_name", "P")
        with pytest.raises(UnsavedChangesError):
            session.close()

    def test_force_close(self):
        session = _session()
        session.update_field("project_name", "P")
        session.close(force=True)

    def test_close_after_save(self):
        session = _session()
        session.update_field("project_name", "P")
        session.save()
        session.close()

    def test_snapshot_is_independent(self):
        session = _session()
        session.add_shot(description="A", equipment=["50mm"])
        snap = session.snapshot()
        snap.shot_list[0].equipment.append("tripod")
        assert session.document.shot_list[0].equipment == ["50mm"]
