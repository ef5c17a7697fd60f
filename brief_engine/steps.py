"""Wizard step catalogue.

Steps are static descriptors keyed by a stable string id.  Each document field
is owned by exactly one step; a step's gating set for a role is derived from
the role's required fields (see roles.step_required_fields), so there is only
one required-field list in the system.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple


class StepKind(str, Enum):
    IDENTITY = "identity"
    DETAILS = "details"
    BUDGET = "budget"
    SCHEDULE = "schedule"
    MOODBOARD = "moodboard"
    DELIVERABLES = "deliverables"
    SHOTLIST = "shotlist"
    EQUIPMENT = "equipment"
    CREW = "crew"
    CALLSHEET = "callsheet"
    REVIEW = "review"


@dataclass(frozen=True)
class Step:
    step_id: str
    title: str
    kind: StepKind
    fields: FrozenSet[str] = frozenset()


IDENTITY_STEP_ID = "client-info"
REVIEW_STEP_ID = "review"

STEPS: Dict[str, Step] = {
    "client-info": Step(
        step_id="client-info",
        title="Your Information",
        kind=StepKind.IDENTITY,
        fields=frozenset({"client_name", "client_company", "client_email", "client_phone"}),
    ),
    "project-details": Step(
        step_id="project-details",
        title="Project Details",
        kind=StepKind.DETAILS,
        fields=frozenset({
            "project_name", "project_type", "overview", "objectives", "audience",
            "brand_guidelines", "style_references", "competitor_notes",
            "legal_requirements",
        }),
    ),
    "budget": Step(
        step_id="budget",
        title="Budget",
        kind=StepKind.BUDGET,
        fields=frozenset({"budget", "currency", "budget_line_items"}),
    ),
    "location-date": Step(
        step_id="location-date",
        title="Date & Location",
        kind=StepKind.SCHEDULE,
        fields=frozenset({
            "shoot_dates", "shoot_start_time", "shoot_finish_time",
            "shoot_status", "location",
        }),
    ),
    "moodboard": Step(
        step_id="moodboard",
        title="Mood Board",
        kind=StepKind.MOODBOARD,
        fields=frozenset({"moodboard_link"}),
    ),
    "deliverables": Step(
        step_id="deliverables",
        title="Deliverables",
        kind=StepKind.DELIVERABLES,
        fields=frozenset({
            "deliverables", "file_types", "usage_rights", "social_platforms",
            "video_duration", "video_frame_rate", "video_resolution",
            "video_orientation", "motion_requirements", "editing_requirements",
            "color_grading_notes", "turnaround_time", "revision_rounds",
            "final_delivery_format",
        }),
    ),
    "shot-list": Step(
        step_id="shot-list",
        title="Shot List",
        kind=StepKind.SHOTLIST,
        fields=frozenset({"shot_list"}),
    ),
    "equipment": Step(
        step_id="equipment",
        title="Equipment",
        kind=StepKind.EQUIPMENT,
        fields=frozenset({"equipment"}),
    ),
    "crew": Step(
        step_id="crew",
        title="Crew & Talent",
        kind=StepKind.CREW,
        fields=frozenset({"crew"}),
    ),
    "call-sheet": Step(
        step_id="call-sheet",
        title="Call Sheet & Logistics",
        kind=StepKind.CALLSHEET,
        fields=frozenset({
            "schedule", "emergency_contact", "nearest_hospital", "notes",
            "permits_required", "insurance_details", "safety_protocols",
            "backup_plan", "power_requirements", "internet_required",
            "catering_notes", "transportation_details", "accommodation_details",
        }),
    ),
    "review": Step(
        step_id="review",
        title="Review & Distribute",
        kind=StepKind.REVIEW,
    ),
}

_FIELD_OWNER: Dict[str, str] = {
    field: step.step_id for step in STEPS.values() for field in step.fields
}


def owning_step(field: str) -> Optional[str]:
    """Return the id of the step that edits *field*, or None."""
    return _FIELD_OWNER.get(field)


def steps_for(step_ids: Tuple[str, ...]) -> Tuple[Step, ...]:
    return tuple(STEPS[step_id] for step_id in step_ids)


STEP_LABELS: Dict[str, Dict[str, str]] = {
    "shot-list": {
        "Client": "Shot Ideas",
        "Photographer": "Shot List & Technical Specs",
        "Producer": "Production Shot List",
    },
    "deliverables": {
        "Client": "What You Need",
        "Photographer": "Deliverables & Usage",
        "Producer": "Production Requirements",
    },
    "review": {
        "Client": "Review & Submit",
        "Photographer": "Review & Share",
        "Producer": "Review & Distribute",
    },
}

STEP_HELP_TEXT: Dict[str, Dict[str, str]] = {
    "project-details": {
        "Client": "Tell us about your project. What are the key goals and who is the audience?",
        "Photographer": "Define the core project parameters, objectives, and creative direction.",
        "Producer": "Outline the project scope, deliverables, and production requirements.",
    },
    "shot-list": {
        "Client": "List any specific shots or ideas you have in mind.",
        "Photographer": "Build a detailed shot list with technical specifications.",
        "Producer": "Plan and organize the production shot list and schedule.",
    },
    "deliverables": {
        "Client": "Let us know what you need. Don't worry if you're unsure about technical details.",
        "Photographer": "Specify deliverable formats, usage rights, and technical requirements.",
        "Producer": "Define all required assets, formats, and delivery specifications.",
    },
}


def step_label(step_id: str, role: str) -> str:
    """Role-specific label for a step, falling back to the step title."""
    label = STEP_LABELS.get(step_id, {}).get(role)
    if label:
        return label
    step = STEPS.get(step_id)
    return step.title if step else step_id


def step_help_text(step_id: str, role: str) -> str:
    return STEP_HELP_TEXT.get(step_id, {}).get(role, "")
