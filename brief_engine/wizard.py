"""Wizard state machine: step sequencing and forward-navigation gating.

The machine owns only navigation state (current index, errors_visible).  It
reads the document through a callable so gating always sees the current
contents, and it never writes to the document.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

from brief_engine.completion import missing_fields
from brief_engine.models import Document
from brief_engine.roles import get_config, resolve_role, step_required_fields
from brief_engine.steps import Step

logger = logging.getLogger(__name__)


class WizardStateMachine:
    """Role-driven linear step sequence with gated forward navigation.

    States are integer indices into the role's enabled steps.  ``next()`` is
    refused while the current step has missing required fields; ``prev()``
    and ``go_to()`` are never gated.  The last step (review) is terminal.
    """

    def __init__(self, role: Optional[str], read_document: Callable[[], Document]):
        self._read_document = read_document
        self._role = resolve_role(role)
        self._steps: Tuple[Step, ...] = get_config(self._role).enabled_steps
        self.current_step_index = 0
        self.errors_visible = False

    # ── state ────────────────────────────────────────────────────────────

    @property
    def role(self) -> str:
        return self._role

    @property
    def steps(self) -> Tuple[Step, ...]:
        return self._steps

    @property
    def current_step(self) -> Step:
        return self._steps[self.current_step_index]

    @property
    def is_first(self) -> bool:
        return self.current_step_index == 0

    @property
    def is_last(self) -> bool:
        return self.current_step_index == len(self._steps) - 1

    def required_for_current_step(self) -> List[str]:
        return step_required_fields(self.current_step, self._role)

    def missing_for_current_step(self) -> List[str]:
        return missing_fields(self._read_document(), self.required_for_current_step())

    def can_advance(self) -> bool:
        return not self.missing_for_current_step()

    def visible_errors(self) -> Dict[str, str]:
        """Inline messages for the current step, only after a refused next()."""
        if not self.errors_visible:
            return {}
        return {
            name: f"{name.replace('_', ' ').capitalize()} is required"
            for name in self.missing_for_current_step()
        }

    # ── transitions ──────────────────────────────────────────────────────

    def next(self) -> bool:
        """Advance one step.  Returns False when gating refused the move."""
        if self.is_last:
            return False
        missing = self.missing_for_current_step()
        if missing:
            logger.debug(
                "next() refused at step %r; missing %s", self.current_step.step_id, missing
            )
            self.errors_visible = True
            return False
        self.current_step_index = min(self.current_step_index + 1, len(self._steps) - 1)
        self.errors_visible = False
        return True

    def prev(self) -> bool:
        self.errors_visible = False
        if self.is_first:
            return False
        self.current_step_index -= 1
        return True

    def go_to(self, index: int) -> bool:
        """Jump to *index* without gating; out-of-range indices are ignored."""
        if not 0 <= index < len(self._steps):
            return False
        self.current_step_index = index
        self.errors_visible = False
        return True

    def go_to_step(self, step_id: str) -> bool:
        for index, step in enumerate(self._steps):
            if step.step_id == step_id:
                return self.go_to(index)
        return False

    def set_role(self, role: Optional[str]) -> None:
        """Switch role: recompute steps and restart at the first step."""
        self._role = resolve_role(role)
        self._steps = get_config(self._role).enabled_steps
        self.current_step_index = 0
        self.errors_visible = False

    def restore(self, index: int) -> None:
        """Rehydrate a persisted index, clamped into range."""
        self.current_step_index = max(0, min(int(index), len(self._steps) - 1))
        self.errors_visible = False
