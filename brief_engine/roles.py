"""Role registry — static configuration for the three fixed roles.

get_config() is total: an unknown or missing role resolves to the default
role's configuration instead of failing.  Role configs are the single source
of required fields, used both for step gating and for completion scoring.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Dict, List, Optional, Tuple

from brief_engine.steps import IDENTITY_STEP_ID, REVIEW_STEP_ID, STEPS, Step, steps_for

DEFAULT_ROLE = "Client"
ROLES: Tuple[str, ...] = ("Client", "Photographer", "Producer")


@dataclass(frozen=True)
class RolePermissions:
    can_edit_budget: bool = False
    can_view_budget: bool = False
    can_manage_crew: bool = False
    can_edit_technical_specs: bool = False
    can_use_ai: bool = False
    can_export_pdf: bool = False
    can_share_brief: bool = False
    can_email_brief: bool = False
    can_manage_equipment: bool = False
    can_create_call_sheet: bool = False
    can_use_templates: bool = False
    can_upload_reference: bool = False
    can_set_deadlines: bool = False
    can_track_progress: bool = False
    can_access_analytics: bool = False
    can_collaborate: bool = False
    can_reorder_shots: bool = False
    can_add_technical_details: bool = False
    can_set_shot_priority: bool = False
    can_mark_shot_complete: bool = False
    can_add_multiple_locations: bool = False
    can_access_weather_data: bool = False
    can_view_sunrise_sunset: bool = False


_ALL_PERMISSIONS = RolePermissions(**{f.name: True for f in fields(RolePermissions)})


@dataclass(frozen=True)
class RoleConfig:
    role: str
    display_name: str
    description: str
    permissions: RolePermissions
    enabled_steps: Tuple[Step, ...]
    required_fields: Tuple[str, ...]
    placeholders: Dict[str, str] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
    welcome_message: str = ""
    ai_context: str = ""
    default_export_format: str = "markdown"
    available_export_formats: Tuple[str, ...] = ("markdown", "json")

    @property
    def step_ids(self) -> Tuple[str, ...]:
        return tuple(step.step_id for step in self.enabled_steps)


CLIENT_CONFIG = RoleConfig(
    role="Client",
    display_name="Client",
    description="Create a brief to communicate your vision and requirements",
    permissions=RolePermissions(
        can_edit_budget=True,
        can_view_budget=True,
        can_use_ai=True,
        can_export_pdf=True,
        can_share_brief=True,
        can_email_brief=True,
        can_use_templates=True,
        can_upload_reference=True,
        can_set_deadlines=True,
        can_track_progress=True,
        can_collaborate=True,
        can_set_shot_priority=True,
    ),
    enabled_steps=steps_for((
        "client-info", "project-details", "moodboard", "location-date",
        "deliverables", "shot-list", "review",
    )),
    required_fields=(
        "project_name", "project_type", "overview", "objectives", "client_name",
        "client_email", "shoot_dates", "location", "deliverables",
    ),
    placeholders={
        "overview": "Describe what you want to achieve with this photoshoot...",
        "objectives": "What are your main goals? (e.g., Increase brand awareness, showcase new products...)",
        "notes": "Any additional details or special requests...",
    },
    labels={
        "shot_list_title": "My Shot Ideas",
        "budget_title": "Budget Range",
        "export_label": "Share Brief",
        "complete_label": "Submit Brief",
    },
    welcome_message=(
        "Let's create a detailed brief to bring your vision to life! Share your "
        "ideas, and we'll help you communicate them clearly to photographers and producers."
    ),
    ai_context=(
        "Focus on clear communication, visual concepts, and non-technical "
        "language suitable for a client audience."
    ),
)

PHOTOGRAPHER_CONFIG = RoleConfig(
    role="Photographer",
    display_name="Photographer",
    description="Plan your shoot with detailed shot lists and technical specs",
    permissions=_ALL_PERMISSIONS,
    enabled_steps=steps_for((
        "client-info", "project-details", "moodboard", "location-date",
        "deliverables", "shot-list", "equipment", "crew", "call-sheet", "review",
    )),
    required_fields=(
        "project_name", "project_type", "overview", "shoot_dates", "location",
        "shot_list",
    ),
    placeholders={
        "overview": "Technical approach, style, and creative direction for this project...",
        "objectives": "Creative objectives and technical goals for this shoot...",
        "notes": "Technical notes, backup plans, contingencies...",
    },
    labels={
        "shot_list_title": "Shot List & Technical Specs",
        "budget_title": "Project Budget",
        "export_label": "Export Shot List",
        "complete_label": "Finalize Plan",
    },
    welcome_message=(
        "Ready to plan your shoot? Use our advanced tools to create detailed "
        "shot lists, manage equipment, and coordinate your crew for a successful production."
    ),
    ai_context=(
        "Include technical specifications, camera settings, lighting details, "
        "and professional photography terminology."
    ),
    default_export_format="shots-csv",
    available_export_formats=("markdown", "json", "shots-csv"),
)

PRODUCER_CONFIG = RoleConfig(
    role="Producer",
    display_name="Producer",
    description="Manage production logistics, crew, budgets, and schedules",
    permissions=_ALL_PERMISSIONS,
    enabled_steps=steps_for((
        "client-info", "project-details", "budget", "location-date", "moodboard",
        "deliverables", "shot-list", "equipment", "crew", "call-sheet", "review",
    )),
    required_fields=(
        "project_name", "project_type", "overview", "budget", "shoot_dates",
        "location", "crew",
    ),
    placeholders={
        "overview": "Production overview, key deliverables, and coordination requirements...",
        "objectives": "Production objectives, timeline requirements, and success metrics...",
        "notes": "Logistics notes, crew information, production details...",
    },
    labels={
        "shot_list_title": "Production Shot List",
        "budget_title": "Production Budget Breakdown",
        "export_label": "Export Production Package",
        "complete_label": "Approve & Distribute",
    },
    welcome_message=(
        "Let's coordinate this production! Manage budgets, crew schedules, "
        "equipment, and keep everything running smoothly from pre-production to wrap."
    ),
    ai_context=(
        "Focus on production logistics, crew coordination, budget "
        "considerations, and timeline management."
    ),
    default_export_format="budget-csv",
    available_export_formats=("markdown", "json", "shots-csv", "budget-csv"),
)

ROLE_CONFIGS: Dict[str, RoleConfig] = {
    "Client": CLIENT_CONFIG,
    "Photographer": PHOTOGRAPHER_CONFIG,
    "Producer": PRODUCER_CONFIG,
}


def resolve_role(role: Optional[str]) -> str:
    """Map any input to one of ROLES; unknown or missing → DEFAULT_ROLE."""
    return role if role in ROLE_CONFIGS else DEFAULT_ROLE


def get_config(role: Optional[str]) -> RoleConfig:
    return ROLE_CONFIGS[resolve_role(role)]


def get_required_fields(role: Optional[str]) -> List[str]:
    return list(get_config(role).required_fields)


def has_permission(role: Optional[str], permission: str) -> bool:
    """True when *role* grants *permission*; unknown permission names are denied."""
    return bool(getattr(get_config(role).permissions, permission, False))


def is_step_enabled(role: Optional[str], step_id: str) -> bool:
    return step_id in get_config(role).step_ids


def step_required_fields(step: Step, role: Optional[str]) -> List[str]:
    """Required fields of *role* that *step* owns, in the role's declared order."""
    return [f for f in get_config(role).required_fields if f in step.fields]


def is_step_optional(step: Step, role: Optional[str]) -> bool:
    """A step is optional for *role* when none of its fields are required."""
    return not step_required_fields(step, role)


def role_text(role: Optional[str], kind: str) -> str:
    return get_config(role).labels.get(kind, "")


def placeholder(role: Optional[str], field_name: str) -> str:
    return get_config(role).placeholders.get(field_name, "")


def ai_context(role: Optional[str]) -> str:
    return get_config(role).ai_context


def field_in_context(role: Optional[str], field_name: str) -> bool:
    """True when some step enabled for *role* edits *field_name*."""
    return any(field_name in step.fields for step in get_config(role).enabled_steps)


def check_registry() -> List[str]:
    """Structural self-check of every role config.

    Returns a list of human-readable problems (empty list = consistent).
    """
    errors: List[str] = []
    for name, config in ROLE_CONFIGS.items():
        ids = config.step_ids
        if len(set(ids)) != len(ids):
            errors.append(f"{name}: duplicate step ids in {list(ids)}")
        if not ids or ids[0] != IDENTITY_STEP_ID:
            errors.append(f"{name}: first step must be {IDENTITY_STEP_ID!r}")
        if not ids or ids[-1] != REVIEW_STEP_ID:
            errors.append(f"{name}: last step must be {REVIEW_STEP_ID!r}")
        for step_id in ids:
            if step_id not in STEPS:
                errors.append(f"{name}: unknown step {step_id!r}")
        for required in config.required_fields:
            if not field_in_context(name, required):
                errors.append(f"{name}: required field {required!r} has no enabled step")
    return errors
