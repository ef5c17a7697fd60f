"""Export collaborators.

An exporter turns a Document snapshot into bytes.  export_document() hands it
a deep copy with normalised list ordering, so no exporter can mutate the live
document, and any failure it raises surfaces as ExportError.
"""
from __future__ import annotations

import csv
import io
import logging
from typing import Callable, Dict, List

from brief_engine.exceptions import ExportError
from brief_engine.models import Document
from brief_engine.ordered_list import group_by_category
from brief_engine.schemas.brief_v1 import canonical_json_bytes
from brief_engine.session import BriefSession

logger = logging.getLogger(__name__)

Exporter = Callable[[Document], bytes]

SHOT_COLUMNS = [
    "order", "description", "shot_type", "angle", "orientation",
    "category", "priority", "quantity", "notes",
]
BUDGET_COLUMNS = ["order", "category", "description", "quantity", "unit_cost", "total", "notes"]


def export_document(session: BriefSession, exporter: Exporter) -> bytes:
    """Run *exporter* over a snapshot of the session's document.

    Raises:
        ExportError: the exporter raised; the document is unchanged.
    """
    snapshot = session.snapshot()
    try:
        return exporter(snapshot)
    except Exception as exc:
        logger.warning("Export failed: %s", exc)
        raise ExportError(f"export failed: {exc}") from exc


def document_json(document: Document) -> bytes:
    return canonical_json_bytes(document)


def _csv_bytes(header, rows) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buffer.getvalue().encode("utf-8")


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def shot_list_csv(document: Document) -> bytes:
    """One row per shot, in list order."""
    rows = [[_cell(getattr(shot, column)) for column in SHOT_COLUMNS] for shot in document.shot_list]
    return _csv_bytes(SHOT_COLUMNS, rows)


def budget_csv(document: Document) -> bytes:
    """One row per budget line, followed by a TOTAL row with the grand total."""
    items = document.budget_line_items
    rows = [
        [
            item.order,
            item.category,
            item.description,
            _format_number(item.quantity),
            f"{item.unit_cost:.2f}",
            f"{item.total:.2f}",
            _cell(item.notes),
        ]
        for item in items
    ]
    grand_total = sum(item.total for item in items)
    rows.append(["", "TOTAL", document.currency or "", "", "", f"{grand_total:.2f}", ""])
    return _csv_bytes(BUDGET_COLUMNS, rows)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def document_markdown(document: Document) -> bytes:
    """Readable Markdown brief; sections without content are left out."""
    lines = [f"# {document.project_name or 'Photography Brief'}", ""]
    lines.append(f"**Created by:** {document.client_name or 'Unknown'}  ")
    lines.append(f"**Updated:** {document.updated_at or 'N/A'}  ")
    lines.append(f"**Role:** {document.role or 'N/A'}  ")
    lines.append("")

    def section(title: str, body: List[str]) -> None:
        lines.extend([f"## {title}", "", *body, ""])

    if document.overview or document.project_type:
        body = []
        if document.project_type:
            body.append(f"**Type:** {document.project_type}  ")
        if document.overview:
            body.append(document.overview)
        section("Project Overview", body)
    if document.objectives:
        section("Objectives", [document.objectives])
    if document.audience:
        section("Target Audience", [document.audience])

    contact = [
        f"**{label}:** {value}  "
        for label, value in (
            ("Name", document.client_name),
            ("Company", document.client_company),
            ("Email", document.client_email),
            ("Phone", document.client_phone),
        )
        if value
    ]
    if document.client_email or document.client_phone or document.client_company:
        section("Contact Information", contact)

    if document.shoot_dates or document.location:
        section("Shoot Details", [
            f"**{label}:** {value}  "
            for label, value in (
                ("Date(s)", document.shoot_dates),
                ("Status", document.shoot_status),
                ("Location", document.location),
            )
            if value
        ])

    if document.deliverables:
        section("Deliverables", [f"- {d}" for d in document.deliverables])

    if document.shot_list:
        body = []
        for shot in document.shot_list:
            body.append(f"### Shot {shot.order}{' (priority)' if shot.priority else ''}")
            body.append("")
            body.append(f"**Description:** {shot.description}  ")
            body.append(f"**Type:** {shot.shot_type} | **Angle:** {shot.angle}  ")
            if shot.category:
                body.append(f"**Category:** {shot.category}  ")
            if shot.equipment:
                body.append(f"**Equipment:** {', '.join(shot.equipment)}  ")
            if shot.notes:
                body.append(f"**Notes:** {shot.notes}  ")
            body.append("")
        section("Shot List", body[:-1])

    if document.crew:
        body = ["| Name | Role | Call Time | Contact |", "|------|------|-----------|---------|"]
        body.extend(
            f"| {m.name} | {m.role} | {m.call_time or 'TBD'} | {m.contact or 'TBD'} |"
            for m in document.crew
        )
        section("Crew", body)

    if document.equipment:
        body = []
        for category, items in group_by_category(document.equipment).items():
            body.extend([f"### {category}", ""])
            for item in items:
                entry = f"- {item.name}"
                if item.quantity > 1:
                    entry += f" (x{item.quantity})"
                if item.is_rental:
                    entry += " [RENTAL]"
                body.append(entry)
            body.append("")
        section("Equipment List", body[:-1])

    if document.budget or document.budget_line_items:
        body = []
        if document.budget:
            body.append(f"**Range:** {document.budget}  ")
        if document.budget_line_items:
            total = sum(item.total for item in document.budget_line_items)
            body.append(f"**Line Item Total:** {total:.2f} {document.currency or ''}".rstrip() + "  ")
        section("Budget", body)

    return ("\n".join(lines).rstrip("\n") + "\n").encode("utf-8")


EXPORTERS: Dict[str, Exporter] = {
    "json": document_json,
    "shots-csv": shot_list_csv,
    "budget-csv": budget_csv,
    "markdown": document_markdown,
}
