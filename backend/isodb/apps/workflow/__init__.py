from .engine import TransitionError, check_transition, ensure_editable, is_editable
from .registry import EDITABLE_STATES, WORKFLOWS

__all__ = [
    "EDITABLE_STATES",
    "TransitionError",
    "WORKFLOWS",
    "check_transition",
    "ensure_editable",
    "is_editable",
]
