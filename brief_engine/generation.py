"""Generative-text boundary.

The collaborator itself (model, transport, API keys) lives outside this
package and is reached through the TextGenerator protocol.  This module builds
prompts from the current document, validates what comes back, and applies it
to the session all-or-nothing:

- schema-constrained responses are parsed as JSON, checked against the
  packaged contract with jsonschema, then validated by the pydantic models;
  any failure raises GenerationError and leaves the document untouched.
- at most one request per target is in flight; each request is represented
  by a GenerationHandle that the caller may cancel.  A result whose target
  field is no longer part of the active role's steps, or whose handle was
  cancelled, is dropped without error.
"""
from __future__ import annotations

import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from pydantic import ValidationError

from brief_engine.contract_validate import contract_errors
from brief_engine.exceptions import GenerationError, GenerationInFlightError
from brief_engine.models import EDITABLE_FIELDS, Document, EquipmentItem, Shot
from brief_engine.roles import ai_context
from brief_engine.schema_loader import load_schema
from brief_engine.session import BriefSession

logger = logging.getLogger(__name__)

SHOT_CONTRACT = "ShotSuggestions.v1.json"
IDEAS_CONTRACT = "ProjectIdeas.v1.json"
EQUIPMENT_CONTRACT = "EquipmentSuggestions.v1.json"

_NOT_SPECIFIED = "Not specified"


class TextGenerator(Protocol):
    def generate(
        self,
        prompt: str,
        output_schema: Optional[Dict[str, Any]] = None,
        images: Optional[List[str]] = None,
    ) -> Optional[str]: ...


# ── Prompts ───────────────────────────────────────────────────────────────────


def _value(document: Document, name: str, default: str = _NOT_SPECIFIED) -> str:
    value = getattr(document, name, None)
    if isinstance(value, list):
        return ", ".join(str(v) for v in value) or default
    return str(value) if value not in (None, "") else default


def _brief_context(document: Document) -> str:
    lines = [
        f"Project Name: {_value(document, 'project_name')}",
        f"Project Type: {_value(document, 'project_type')}",
        f"Overview: {_value(document, 'overview')}",
        f"Objectives: {_value(document, 'objectives')}",
        f"Target Audience: {_value(document, 'audience')}",
    ]
    if document.brand_guidelines:
        lines.append(f"Brand Guidelines: {document.brand_guidelines}")
    if document.style_references:
        lines.append(f"Style References: {document.style_references}")
    return "\n".join(lines)


def _existing_shots(document: Document) -> str:
    if not document.shot_list:
        return ""
    joined = "; ".join(shot.description for shot in document.shot_list)
    return f"\n\nExisting shots (avoid duplicates): {joined}"


_SHOT_FIELDS_HELP = """For each shot, provide:
- description: clear, specific shot description
- shot_type: one of "Wide", "Medium", "Close-up", "Detail", "Overhead"
- angle: one of "Eye-level", "High Angle", "Low Angle", "Dutch Angle"
- orientation: one of "Portrait", "Landscape", "Square", "Any"
- notes: technical notes, lighting suggestions, or creative direction
- category: shot category (e.g. "Hero", "Details", "Lifestyle")
- priority: true if this is a must-have shot

Return a JSON array."""


def shot_list_prompt(document: Document) -> str:
    return (
        "You are an expert photography director. Based on this brief, generate "
        "a shot list of 5-7 diverse, strategic ideas.\n\n"
        f"{_brief_context(document)}{_existing_shots(document)}\n\n"
        f"{ai_context(document.role)}\n\n{_SHOT_FIELDS_HELP}"
    )


def shots_from_images_prompt(document: Document) -> str:
    return (
        "You are an expert photo art director. Analyze the attached reference "
        "images (lighting, composition, palette, framing) and propose 5-7 shots "
        "that match their style and fulfil this brief.\n\n"
        f"{_brief_context(document)}{_existing_shots(document)}\n\n{_SHOT_FIELDS_HELP}"
    )


def project_ideas_prompt(document: Document) -> str:
    prompt = f'Based on the project name "{_value(document, "project_name")}"'
    if document.project_type:
        prompt += f", which is a {document.project_type} project"
    if document.budget:
        prompt += f" with a budget of {document.budget}"
    if document.audience:
        prompt += f" targeting {document.audience}"
    prompt += (
        ", generate:\n1. A concise, one-paragraph project overview (2-3 sentences)\n"
        "2. A list of 3-4 key objectives\n\n"
        'Return as JSON: { "overview": "...", "objectives": ["...", "..."] }'
    )
    return prompt


def brief_analysis_prompt(document: Document) -> str:
    return (
        "You are an expert photography producer. Review this brief and give 3-5 "
        "specific, actionable recommendations covering completeness, clarity, "
        "feasibility, shot coverage and risks.\n\n"
        f"{_brief_context(document)}\n"
        f"Budget: {_value(document, 'budget')}\n"
        f"Shot Count: {len(document.shot_list)}\n"
        f"Crew Count: {len(document.crew)}"
    )


def budget_check_prompt(document: Document) -> str:
    return (
        "As a photography pricing expert, evaluate whether this budget is "
        "reasonable for the scope, give the typical industry range, and suggest "
        "optimizations.\n\n"
        f"Project Type: {_value(document, 'project_type')}\n"
        f"Stated Budget: {_value(document, 'budget')}\n"
        f"Shot Count: {len(document.shot_list)}\n"
        f"Crew Size: {len(document.crew)}\n"
        f"Deliverables: {_value(document, 'deliverables')}\n"
        f"Usage Rights: {_value(document, 'usage_rights')}"
    )


def schedule_prompt(document: Document) -> str:
    shots = "\n".join(f"- {s.description} ({s.shot_type})" for s in document.shot_list)
    crew = "\n".join(
        f"- {c.name} ({c.role}, call: {c.call_time or 'TBD'})" for c in document.crew
    )
    return (
        "You are an expert photo producer. Draft a time-stamped shoot day "
        "schedule with call times, setup, shot-by-shot timing, breaks and wrap.\n\n"
        f"Shoot Date: {_value(document, 'shoot_dates', 'TBD')}\n"
        f"Location: {_value(document, 'location', 'TBD')}\n\n"
        f"Crew:\n{crew or 'No crew listed.'}\n\n"
        f"Key Shots:\n{shots or 'No shot list provided.'}"
    )


def risk_prompt(document: Document) -> str:
    return (
        "As a risk management expert for photography production, identify 3-5 "
        "key risks with likelihood, impact and mitigation.\n\n"
        f"Project: {_value(document, 'project_name')}\n"
        f"Type: {_value(document, 'project_type')}\n"
        f"Date: {_value(document, 'shoot_dates', 'TBD')}\n"
        f"Location: {_value(document, 'location', 'TBD')}\n"
        f"Crew Size: {len(document.crew)}\n"
        f"Shot Count: {len(document.shot_list)}"
    )


def equipment_prompt(document: Document) -> str:
    shots = "\n".join(f"{s.shot_type} shot: {s.description}" for s in document.shot_list)
    return (
        "Based on this shot list, suggest essential equipment (camera, lenses, "
        "lighting, support). Return a JSON array of equipment names.\n\n"
        f"{shots or 'No shots specified'}"
    )


def explain_term_prompt(term: str, context: str = "") -> str:
    where = f" in the context of: {context}" if context else ""
    return (
        f'Explain the photography term "{term}" in simple, client-friendly '
        f"language{where}. Keep it under 3 sentences and avoid jargon."
    )


# ── Parsing ───────────────────────────────────────────────────────────────────


def parse_text(text: Optional[str]) -> str:
    if text is None or not text.strip():
        raise GenerationError("generator returned no text")
    return text.strip()


def parse_json_response(text: Optional[str], contract: str) -> Any:
    """Decode *text* as JSON and check it against *contract*.

    Raises:
        GenerationError: empty, non-JSON, or non-conforming response.
    """
    if text is None:
        raise GenerationError("generator returned no response")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GenerationError(f"response is not valid JSON: {exc}") from exc
    errors = contract_errors(data, contract)
    if errors:
        raise GenerationError(f"response violates {contract}: {'; '.join(errors)}")
    return data


def parse_shot_suggestions(text: Optional[str]) -> List[Shot]:
    """Parse a schema-constrained shot batch; ids are placeholders until appended."""
    data = parse_json_response(text, SHOT_CONTRACT)
    try:
        return [Shot.model_validate({**entry, "id": 0}) for entry in data]
    except ValidationError as exc:
        raise GenerationError(f"shot suggestion rejected: {exc}") from exc


def parse_project_ideas(text: Optional[str]) -> Dict[str, Any]:
    data = parse_json_response(text, IDEAS_CONTRACT)
    return {"overview": data["overview"], "objectives": list(data["objectives"])}


def parse_equipment_suggestions(text: Optional[str]) -> List[str]:
    return list(parse_json_response(text, EQUIPMENT_CONTRACT))


# ── In-flight tracking ────────────────────────────────────────────────────────


@dataclass
class GenerationHandle:
    """One outstanding request.  Cancelling makes its eventual result a no-op."""

    target: str
    handle_id: int
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class GenerationCoordinator:
    """Runs generation requests against a session, one per target at a time."""

    def __init__(self, session: BriefSession, generator: TextGenerator):
        self.session = session
        self.generator = generator
        self._in_flight: Dict[str, GenerationHandle] = {}
        self._ids = itertools.count(1)

    def in_flight(self, target: str) -> bool:
        return target in self._in_flight

    def begin(self, target: str) -> GenerationHandle:
        """Register a request for *target*.

        Raises:
            GenerationInFlightError: a request for *target* is still outstanding.
        """
        if target in self._in_flight:
            raise GenerationInFlightError(target)
        handle = GenerationHandle(target=target, handle_id=next(self._ids))
        self._in_flight[target] = handle
        return handle

    def release(self, handle: GenerationHandle) -> None:
        if self._in_flight.get(handle.target) is handle:
            del self._in_flight[handle.target]

    def _applicable(self, handle: GenerationHandle) -> bool:
        if handle.cancelled:
            logger.info("Dropping result of cancelled generation for %r", handle.target)
            return False
        if handle.target in EDITABLE_FIELDS and not self.session.field_in_context(handle.target):
            logger.info("Dropping stale generation result for %r", handle.target)
            return False
        return True

    # resolution: each releases the handle whatever the outcome

    def resolve_shots(self, handle: GenerationHandle, text: Optional[str]) -> Optional[List[Shot]]:
        """Append a generated shot batch.  Returns the added shots, or None if dropped.

        Raises:
            GenerationError: malformed response; the shot list is unchanged.
        """
        try:
            shots = parse_shot_suggestions(text)
            if not self._applicable(handle):
                return None
            return self.session.add_items("shot_list", shots)  # type: ignore[return-value]
        except GenerationError as exc:
            logger.warning("Discarding malformed shot suggestions: %s", exc)
            raise
        finally:
            self.release(handle)

    def resolve_project_ideas(
        self, handle: GenerationHandle, text: Optional[str]
    ) -> Optional[Dict[str, Any]]:
        try:
            ideas = parse_project_ideas(text)
            if not self._applicable(handle):
                return None
            self.session.update_fields({
                "overview": ideas["overview"],
                "objectives": "\n".join(ideas["objectives"]),
            })
            return ideas
        except GenerationError as exc:
            logger.warning("Discarding malformed project ideas: %s", exc)
            raise
        finally:
            self.release(handle)

    def resolve_equipment(
        self, handle: GenerationHandle, text: Optional[str]
    ) -> Optional[List[EquipmentItem]]:
        try:
            names = parse_equipment_suggestions(text)
            if not self._applicable(handle):
                return None
            items = [{"name": name, "category": "Other"} for name in names]
            return self.session.add_items("equipment", items)  # type: ignore[return-value]
        except GenerationError as exc:
            logger.warning("Discarding malformed equipment suggestions: %s", exc)
            raise
        finally:
            self.release(handle)

    def resolve_text(self, handle: GenerationHandle, text: Optional[str]) -> Optional[str]:
        """Free-text result; written to the target when it is a document field."""
        try:
            result = parse_text(text)
            if not self._applicable(handle):
                return None
            if handle.target in EDITABLE_FIELDS:
                self.session.update_field(handle.target, result)
            return result
        finally:
            self.release(handle)

    # synchronous round trips

    def _call(self, handle: GenerationHandle, prompt: str, contract: Optional[str] = None,
              images: Optional[List[str]] = None) -> Optional[str]:
        schema = load_schema(contract) if contract else None
        try:
            return self.generator.generate(prompt, schema, images)
        except Exception as exc:
            self.release(handle)
            raise GenerationError(f"generator failed for {handle.target!r}: {exc}") from exc

    def suggest_shots(self, images: Optional[List[str]] = None) -> Optional[List[Shot]]:
        handle = self.begin("shot_list")
        document = self.session.document
        prompt = shots_from_images_prompt(document) if images else shot_list_prompt(document)
        return self.resolve_shots(handle, self._call(handle, prompt, SHOT_CONTRACT, images))

    def draft_project_ideas(self) -> Optional[Dict[str, Any]]:
        handle = self.begin("overview")
        prompt = project_ideas_prompt(self.session.document)
        return self.resolve_project_ideas(handle, self._call(handle, prompt, IDEAS_CONTRACT))

    def suggest_equipment(self) -> Optional[List[EquipmentItem]]:
        handle = self.begin("equipment")
        prompt = equipment_prompt(self.session.document)
        return self.resolve_equipment(handle, self._call(handle, prompt, EQUIPMENT_CONTRACT))

    def draft_schedule(self) -> Optional[str]:
        handle = self.begin("schedule")
        return self.resolve_text(handle, self._call(handle, schedule_prompt(self.session.document)))

    def analyze_brief(self) -> Optional[str]:
        handle = self.begin("analysis")
        return self.resolve_text(
            handle, self._call(handle, brief_analysis_prompt(self.session.document))
        )

    def check_budget(self) -> Optional[str]:
        handle = self.begin("budget-check")
        return self.resolve_text(
            handle, self._call(handle, budget_check_prompt(self.session.document))
        )

    def assess_risks(self) -> Optional[str]:
        handle = self.begin("risks")
        return self.resolve_text(handle, self._call(handle, risk_prompt(self.session.document)))

    def explain_term(self, term: str, context: str = "") -> Optional[str]:
        handle = self.begin(f"explain:{term}")
        return self.resolve_text(handle, self._call(handle, explain_term_prompt(term, context)))
