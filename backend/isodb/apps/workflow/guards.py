"""Transition guards: callables that list what a proposed record is missing."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping

Problems = List[Dict[str, str]]
Guard = Callable[[Mapping[str, Any]], Problems]


def requires(**reasons: str) -> Guard:
    """Build a guard that flags each named field left empty on the proposed record."""

    def guard(proposed: Mapping[str, Any]) -> Problems:
        return [
            {"field": field, "reason": reason}
            for field, reason in reasons.items()
            if not proposed.get(field)
        ]

    return guard


approval_recorded = requires(
    approved_by="approver required",
    approved_at="approval timestamp required",
)
owner_assigned = requires(owner_id="procedure owner required")
