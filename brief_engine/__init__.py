# Brief Engine — roles, wizard, ordered lists, session
from .exceptions import BriefError, FieldValidationError, UnknownFieldError
from .models import Document, Shot
from .session import BriefSession
from .wizard import WizardStateMachine

__all__ = [
    "BriefError",
    "BriefSession",
    "Document",
    "FieldValidationError",
    "Shot",
    "UnknownFieldError",
    "WizardStateMachine",
]
