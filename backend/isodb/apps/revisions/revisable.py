"""
The revisable-entity contract shared by manuals, sections, procedures and
documents.

A model opts in by setting `__revisable_kind__` to its `RevisableKind` and
by exposing the columns it wants tracked. Everything here is pure: the
functions take snapshots (plain dicts) and return values, so the revision
service decides when and how they touch the database.
"""

from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import inspect

from .models import RevisableKind

Snapshot = Dict[str, Any]

MAJOR_FIELDS = ("title", "status", "content", "procedure_steps")
SUMMARY_EXCLUDED = frozenset({"id", "created_at", "updated_at"})
NO_CHANGES_SUMMARY = "Minor updates"


def kind_of(entity: Any) -> RevisableKind:
    kind = getattr(type(entity), "__revisable_kind__", None)
    if kind is None:
        raise TypeError(f"{type(entity).__name__} does not record revisions")
    return kind


def _json_safe(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def snapshot(entity: Any) -> Snapshot:
    """Column values keyed by column name, converted to JSON-safe types."""
    mapper = inspect(type(entity))
    data: Snapshot = {}
    for attr in mapper.column_attrs:
        column_name = attr.columns[0].name
        data[column_name] = _json_safe(getattr(entity, attr.key))
    return data


def changed_fields(old: Snapshot, new: Snapshot) -> list[str]:
    return [
        field
        for field, value in new.items()
        if field not in SUMMARY_EXCLUDED and old.get(field) != value
    ]


def is_major_change(old: Snapshot, new: Snapshot) -> bool:
    return any(old.get(field) != new.get(field) for field in MAJOR_FIELDS)


def summarize_changes(old: Snapshot, new: Snapshot) -> str:
    """
    >>> summarize_changes({"title": "A"}, {"title": "B", "review_date": "2025-01-01"})
    'Title changed, Review date changed'
    """
    changes = [f"{field.replace('_', ' ').capitalize()} changed" for field in changed_fields(old, new)]
    return ", ".join(changes) or NO_CHANGES_SUMMARY


def next_version(version: Optional[str]) -> Optional[str]:
    """
    Bump the major component and zero the minor one.

    "1.2" -> "2.0", "1" -> "2", "3.4.1" -> "4.0.1". Values whose first
    component is not an integer come back unchanged.
    """
    if version is None:
        return None
    parts = str(version).split(".")
    try:
        major = int(parts[0])
    except ValueError:
        return version
    parts[0] = str(major + 1)
    if len(parts) > 1:
        parts[1] = "0"
    return ".".join(parts)
