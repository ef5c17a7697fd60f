"""Unit tests for WizardStateMachine — step sequencing and gating."""
from __future__ import annotations

from brief_engine.models import Document
from brief_engine.wizard import WizardStateMachine


class _Doc:
    """Mutable holder so tests can change the document under the wizard."""

    def __init__(self, **fields):
        self.document = Document(**fields)

    def set(self, **fields):
        self.document = self.document.model_copy(update=fields)

    def __call__(self) -> Document:
        return self.document


def _wizard(role="Client", **fields):
    holder = _Doc(**fields)
    return WizardStateMachine(role, holder), holder


class TestGating:

    def test_client_blocked_at_identity_step(self):
        wizard, _ = _wizard("Client")
        assert wizard.next() is False
        assert wizard.current_step_index == 0
        assert wizard.errors_visible is True
        assert set(wizard.visible_errors()) == {"client_name", "client_email"}

    def test_errors_hidden_before_first_attempt(self):
        wizard, _ = _wizard("Client")
        assert wizard.visible_errors() == {}

    def test_advance_after_filling(self):
        wizard, holder = _wizard("Client")
        wizard.next()
        holder.set(client_name="Ana", client_email="ana@example.com")
        assert wizard.next() is True
        assert wizard.current_step_index == 1
        assert wizard.errors_visible is False

    def test_photographer_identity_step_not_gated(self):
        wizard, _ = _wizard("Photographer")
        assert wizard.next() is True

    def test_error_message_text(self):
        wizard, _ = _wizard("Client", client_name="Ana")
        wizard.next()
        assert wizard.visible_errors() == {"client_email": "Client email is required"}

    def test_optional_step_without_required_fields(self):
        wizard, _ = _wizard("Client")
        wizard.go_to(2)
        assert wizard.current_step.step_id == "moodboard"
        assert wizard.can_advance()


class TestNavigation:

    def test_prev_never_gated(self):
        wizard, _ = _wizard("Client")
        wizard.go_to(3)
        assert wizard.prev() is True
        assert wizard.current_step_index == 2

    def test_prev_at_first_step(self):
        wizard, _ = _wizard("Client")
        assert wizard.prev() is False
        assert wizard.current_step_index == 0

    def test_prev_clears_errors(self):
        wizard, _ = _wizard("Client")
        wizard.go_to(1)
        wizard.next()
        assert wizard.errors_visible
        wizard.prev()
        assert not wizard.errors_visible

    def test_go_to_out_of_range_ignored(self):
        wizard, _ = _wizard("Client")
        assert wizard.go_to(99) is False
        assert wizard.go_to(-1) is False
        assert wizard.current_step_index == 0

    def test_go_to_step_by_id(self):
        wizard, _ = _wizard("Producer")
        assert wizard.go_to_step("budget") is True
        assert wizard.current_step.step_id == "budget"
        assert wizard.go_to_step("nope") is False

    def test_review_is_terminal(self):
        wizard, _ = _wizard("Photographer")
        wizard.go_to(len(wizard.steps) - 1)
        assert wizard.is_last
        assert wizard.next() is False
        assert wizard.current_step.step_id == "review"


class TestRoleSwitch:

    def test_set_role_restarts_with_new_steps(self):
        wizard, _ = _wizard("Client")
        wizard.go_to(4)
        wizard.set_role("Producer")
        assert wizard.current_step_index == 0
        assert len(wizard.steps) == 11

    def test_unknown_role_uses_default_steps(self):
        wizard, _ = _wizard(None)
        assert wizard.role == "Client"
        assert len(wizard.steps) == 7

    def test_restore_clamps(self):
        wizard, _ = _wizard("Client")
        wizard.restore(50)
        assert wizard.current_step_index == 6
        wizard.restore(-3)
        assert wizard.current_step_index == 0
