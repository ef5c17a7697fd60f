"""Tests for brief_engine/exports.py."""
from __future__ import annotations

import csv
import io
import json

import pytest

from brief_engine.exceptions import ExportError
from brief_engine.exports import (
    BUDGET_COLUMNS,
    EXPORTERS,
    SHOT_COLUMNS,
    budget_csv,
    document_json,
    document_markdown,
    export_document,
    shot_list_csv,
)
from brief_engine.roles import ROLE_CONFIGS
from brief_engine.session import BriefSession


def _rows(payload: bytes):
    return list(csv.reader(io.StringIO(payload.decode("utf-8"))))


def _session_with_content() -> BriefSession:
    session = BriefSession()
    session.select_role("Producer")
    session.update_field("project_name", "Spring Lookbook")
    session.add_shot(description="Hero", shot_type="Close-up", category="Hero", priority=True)
    session.add_shot(description="Wide room", shot_type="Wide")
    session.add_item("budget_line_items", {"description": "Photographer day", "quantity": 2, "unit_cost": 1200})
    session.add_item("budget_line_items", {"description": "Studio", "quantity": 1, "unit_cost": 450.5})
    return session


class TestExportDocument:

    def test_json_export_is_canonical(self):
        session = _session_with_content()
        payload = export_document(session, document_json)
        data = json.loads(payload)
        assert data["project_name"] == "Spring Lookbook"
        assert payload == document_json(session.snapshot())

    def test_exporter_gets_a_copy(self):
        session = _session_with_content()

        def mutating(document):
            document.shot_list.clear()
            return b"ok"

        export_document(session, mutating)
        assert len(session.document.shot_list) == 2

    def test_failure_wrapped_and_document_untouched(self):
        session = _session_with_content()
        before = session.document

        def broken(document):
            raise RuntimeError("printer on fire")

        with pytest.raises(ExportError, match="printer on fire"):
            export_document(session, broken)
        assert session.document is before

    def test_registry(self):
        assert set(EXPORTERS) == {"json", "shots-csv", "budget-csv", "markdown"}

    @pytest.mark.parametrize("role", sorted(ROLE_CONFIGS))
    def test_role_formats_are_registered(self, role):
        config = ROLE_CONFIGS[role]
        assert config.default_export_format in config.available_export_formats
        for fmt in config.available_export_formats:
            assert fmt in EXPORTERS


class TestShotListCsv:

    def test_one_row_per_shot(self):
        rows = _rows(shot_list_csv(_session_with_content().snapshot()))
        assert rows[0] == SHOT_COLUMNS
        assert len(rows) == 3
        assert rows[1][:3] == ["1", "Hero", "Close-up"]
        assert rows[1][SHOT_COLUMNS.index("priority")] == "yes"
        assert rows[2][SHOT_COLUMNS.index("category")] == ""


class TestBudgetCsv:

    def test_lines_and_total_row(self):
        rows = _rows(budget_csv(_session_with_content().snapshot()))
        assert rows[0] == BUDGET_COLUMNS
        assert rows[1][BUDGET_COLUMNS.index("total")] == "2400.00"
        assert rows[2][BUDGET_COLUMNS.index("total")] == "450.50"
        assert rows[-1][1] == "TOTAL"
        assert rows[-1][2] == "USD"
        assert rows[-1][BUDGET_COLUMNS.index("total")] == "2850.50"

    def test_empty_budget_has_zero_total(self):
        rows = _rows(budget_csv(BriefSession().snapshot()))
        assert rows[-1][BUDGET_COLUMNS.index("total")] == "0.00"


class TestMarkdown:

    def test_headings_and_shots(self):
        session = _session_with_content()
        session.update_field("overview", "Spring catalogue")
        text = document_markdown(session.snapshot()).decode("utf-8")
        lines = text.splitlines()
        assert lines[0] == "# Spring Lookbook"
        assert "**Role:** Producer  " in lines
        assert "## Project Overview" in lines
        assert "### Shot 1 (priority)" in lines
        assert "**Type:** Close-up | **Angle:** Eye-level  " in lines
        assert "### Shot 2" in lines
        assert "**Line Item Total:** 2850.50 USD  " in lines
        assert text.endswith("\n") and not text.endswith("\n\n")

    def test_crew_table_and_equipment_groups(self):
        session = _session_with_content()
        session.add_item("crew", {"name": "Ana", "role": "Stylist", "call_time": "07:00"})
        session.add_item("equipment", {"name": "Softbox", "category": "Lighting", "quantity": 2, "is_rental": True})
        session.add_item("equipment", {"name": "R5", "category": "Camera"})
        lines = document_markdown(session.snapshot()).decode("utf-8").splitlines()
        assert "| Name | Role | Call Time | Contact |" in lines
        assert "| Ana | Stylist | 07:00 | TBD |" in lines
        assert lines.index("### Lighting") < lines.index("### Camera")
        assert "- Softbox (x2) [RENTAL]" in lines
        assert "- R5" in lines

    def test_empty_sections_left_out(self):
        text = document_markdown(BriefSession().snapshot()).decode("utf-8")
        assert text.startswith("# Photography Brief\n")
        assert "## Shot List" not in text
        assert "## Crew" not in text
