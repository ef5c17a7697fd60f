"""Unit tests for brief_engine/completion.py."""
from __future__ import annotations

import pytest

from brief_engine.completion import is_present, missing_fields, percentage
from brief_engine.models import CrewMember, Document, Shot
from brief_engine.roles import ROLES, get_required_fields


@pytest.mark.parametrize("value, expected", [
    (None, False),
    ("", False),
    ([], False),
    (" ", True),
    ("x", True),
    (["Photos"], True),
    (False, True),
    (0, True),
])
def test_is_present(value, expected):
    assert is_present(value) is expected


_FILLERS = {
    "deliverables": ["Photos"],
    "shot_list": [Shot(id=1, description="Hero")],
    "crew": [CrewMember(id=1, name="Ana")],
}


class TestPercentage:

    @pytest.mark.parametrize("role", ROLES)
    def test_rises_to_100_as_required_fields_fill(self, role):
        document = Document()
        scores = [percentage(document, get_required_fields(role))]
        for name in get_required_fields(role):
            document = document.model_copy(update={name: _FILLERS.get(name, "filled")})
            scores.append(percentage(document, get_required_fields(role)))
        assert scores[0] == 0
        assert scores == sorted(scores)
        assert all(0 <= s <= 100 for s in scores)
        assert scores[-1] == 100

    def test_empty_document_is_zero(self):
        assert percentage(Document(), get_required_fields("Client")) == 0

    def test_nothing_required_is_complete(self):
        assert percentage(Document(), []) == 100

    def test_rounds_half_up(self):
        # 1 of 8 = 12.5
        required = ["project_name"] + [f"f{i}" for i in range(7)]
        assert percentage(Document(project_name="P"), required) == 13

    def test_photographer_partial(self):
        doc = Document(project_name="P", project_type="Editorial", shot_list=[Shot(id=1)])
        # 3 of 6 present
        assert percentage(doc, get_required_fields("Photographer")) == 50

    def test_all_present_is_100(self):
        doc = Document(
            project_name="P", project_type="T", overview="O", objectives="Ob",
            client_name="C", client_email="c@example.com", shoot_dates="2026-03-01",
            location="Studio", deliverables=["Photos"],
        )
        assert percentage(doc, get_required_fields("Client")) == 100


class TestMissingFields:

    def test_order_follows_required_list(self):
        doc = Document(overview="O")
        assert missing_fields(doc, ["project_name", "overview", "location"]) == [
            "project_name", "location",
        ]

    def test_empty_list_counts_as_missing(self):
        assert missing_fields(Document(deliverables=[]), ["deliverables"]) == ["deliverables"]
