"""Brief document data models — the persisted contract for one brief.

Every field of Document is optional until the user fills it; the only
invariants live in the list-valued sub-entities (ids, contiguous ``order``) and
in BudgetLineItem, whose ``total`` is derived.  extra="ignore" on all models
gives forward-compatibility: unknown fields written by a newer version are
dropped on load rather than rejected.
"""
from __future__ import annotations

from typing import Dict, List, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, computed_field

DOCUMENT_VERSION = 1

UserRole = Literal["Client", "Photographer", "Producer"]
ShotType = Literal["Wide", "Medium", "Close-up", "Detail", "Overhead", "Other"]
ShotAngle = Literal["Eye-level", "High Angle", "Low Angle", "Dutch Angle", "Other"]
Orientation = Literal["Portrait", "Landscape", "Square", "Any"]
ShootStatus = Literal["Confirmed", "Pencil", "Proposed", "TBD"]
Currency = Literal["USD", "EUR", "GBP", "CAD", "AUD"]
EquipmentCategory = Literal["Camera", "Lens", "Lighting", "Audio", "Grip", "Props", "Other"]


# ── List items ────────────────────────────────────────────────────────────────


class ListItem(BaseModel):
    """Common shape of every entry handled by the ordered list engine."""

    model_config = ConfigDict(extra="ignore")

    id: int
    order: int = 0


class Shot(ListItem):
    """A single planned shot.

    ``category`` is a free label used only for display grouping; ``quantity``
    is the number of variant captures needed.
    """

    description: str = ""
    shot_type: ShotType = "Medium"
    angle: ShotAngle = "Eye-level"
    orientation: Optional[Orientation] = None
    priority: bool = False
    notes: str = ""
    category: Optional[str] = None
    quantity: Optional[int] = Field(default=None, ge=1)
    equipment: List[str] = []
    reference_image: Optional[str] = None


class CrewMember(ListItem):
    name: str = ""
    role: str = ""
    call_time: str = ""
    contact: str = ""
    notes: Optional[str] = None
    dietary_restrictions: Optional[str] = None
    parking_info: Optional[str] = None


class BudgetLineItem(ListItem):
    """One costed line of the budget.  ``total`` cannot be set, only derived."""

    category: str = "Photography"
    description: str = ""
    quantity: float = Field(default=1, ge=0)
    unit_cost: float = Field(default=0, ge=0)
    notes: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> float:
        return self.quantity * self.unit_cost


class EquipmentItem(ListItem):
    name: str = ""
    category: EquipmentCategory = "Camera"
    quantity: int = Field(default=1, ge=0)
    is_rental: bool = False
    rental_cost: Optional[float] = None
    checked: bool = False
    notes: Optional[str] = None


# ── Document ──────────────────────────────────────────────────────────────────


class Document(BaseModel):
    """The single in-progress brief being edited."""

    model_config = ConfigDict(extra="ignore")

    version: int = DOCUMENT_VERSION
    created_at: Optional[str] = None  # ISO 8601
    updated_at: Optional[str] = None  # ISO 8601
    role: Optional[UserRole] = None

    # client
    client_name: Optional[str] = None
    client_company: Optional[str] = None
    client_email: Optional[str] = None
    client_phone: Optional[str] = None

    # project
    project_name: Optional[str] = None
    project_type: Optional[str] = None
    budget: Optional[str] = None
    overview: Optional[str] = None
    objectives: Optional[str] = None
    audience: Optional[str] = None
    brand_guidelines: Optional[str] = None
    style_references: Optional[str] = None
    competitor_notes: Optional[str] = None
    legal_requirements: Optional[str] = None

    # shoot
    shoot_dates: Optional[str] = None
    shoot_start_time: Optional[str] = None
    shoot_finish_time: Optional[str] = None
    shoot_status: Optional[ShootStatus] = None
    location: Optional[str] = None

    # logistics
    permits_required: Optional[str] = None
    insurance_details: Optional[str] = None
    safety_protocols: Optional[str] = None
    backup_plan: Optional[str] = None
    power_requirements: Optional[str] = None
    internet_required: Optional[bool] = None
    catering_notes: Optional[str] = None
    transportation_details: Optional[str] = None
    accommodation_details: Optional[str] = None

    # creative
    moodboard_link: Optional[str] = None

    # deliverables
    deliverables: List[str] = []
    file_types: List[str] = []
    usage_rights: List[str] = []
    social_platforms: List[str] = []
    video_duration: Optional[str] = None
    video_frame_rate: Optional[str] = None
    video_resolution: Optional[str] = None
    video_orientation: List[str] = []
    motion_requirements: Optional[str] = None

    # post-production
    editing_requirements: Optional[str] = None
    color_grading_notes: Optional[str] = None
    turnaround_time: Optional[str] = None
    revision_rounds: Optional[str] = None
    final_delivery_format: Optional[str] = None

    # call sheet
    schedule: Optional[str] = None
    emergency_contact: Optional[str] = None
    nearest_hospital: Optional[str] = None
    notes: Optional[str] = None

    # budget
    currency: Optional[Currency] = "USD"

    # ordered collections
    shot_list: List[Shot] = []
    crew: List[CrewMember] = []
    budget_line_items: List[BudgetLineItem] = []
    equipment: List[EquipmentItem] = []

    # highest id ever handed out per list; ids below it are never reissued
    id_watermarks: Dict[str, int] = {}


# ── Field catalogue ───────────────────────────────────────────────────────────

ORDERED_LIST_FIELDS: Dict[str, Type[ListItem]] = {
    "shot_list": Shot,
    "crew": CrewMember,
    "budget_line_items": BudgetLineItem,
    "equipment": EquipmentItem,
}

_METADATA_FIELDS = frozenset({"version", "created_at", "updated_at", "id_watermarks"})

EDITABLE_FIELDS = frozenset(
    name for name in Document.model_fields if name not in _METADATA_FIELDS
)


def new_document(now: Optional[str] = None) -> Document:
    """Return the empty initial document, stamped with *now* when given."""
    return Document(created_at=now, updated_at=now)
