from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from isodb.errors import WorkflowViolation

from .registry import EDITABLE_STATES, WORKFLOWS

logger = logging.getLogger(__name__)


@dataclass
class TransitionError(Exception):
    code: str
    detail: List[Dict[str, str]]


def _state(value: Any) -> str:
    return getattr(value, "value", value)


def is_editable(status: Any) -> bool:
    return _state(status) in EDITABLE_STATES


def ensure_editable(status: Any, *, entity_type: str, entity_id: Optional[str] = None) -> None:
    """Raise WorkflowViolation unless `status` is draft or review."""
    current = _state(status)
    if current in EDITABLE_STATES:
        return
    logger.info(
        "Edit rejected by workflow",
        extra={"entity_type": entity_type, "entity_id": entity_id, "status": current},
    )
    raise WorkflowViolation(
        f"{entity_type.capitalize()} cannot be modified while {current}",
        code="not_editable",
        detail=[{"field": "status", "reason": f"{entity_type} is {current}; only draft or review may change"}],
    )


def check_transition(
    entity_type: str,
    from_state: Any,
    to_state: Any,
    proposed: Mapping[str, Any],
    *,
    entity_id: Optional[str] = None,
) -> None:
    """
    Validate a status change against WORKFLOWS.

    `proposed` is the record as it would look after the move; the guards
    registered for the edge inspect it. Raises TransitionError with
    `invalid_transition` for an unknown entity type, `wrong_state` for a
    move the machine does not have, and `missing_requirements` when a
    guard reports gaps.
    """
    source, target = _state(from_state), _state(to_state)

    machine = WORKFLOWS.get(entity_type)
    if machine is None:
        raise TransitionError(
            code="invalid_transition",
            detail=[{"field": "entity_type", "reason": f"No workflow registered for {entity_type}"}],
        )

    edges = machine.get(source, {})
    if target not in edges:
        raise TransitionError(
            code="wrong_state",
            detail=[{"field": "status", "reason": f"Cannot transition from {source} to {target}"}],
        )

    problems = [problem for guard in edges[target] for problem in guard(proposed)]
    if problems:
        raise TransitionError(code="missing_requirements", detail=problems)

    logger.info(
        "Workflow transition accepted",
        extra={"entity_type": entity_type, "entity_id": entity_id, "from_state": source, "to_state": target},
    )
