from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from isodb.apps.accounts.schemas import UserSummary

from .models import ChangeType, RevisableKind


class RevisionRead(BaseModel):
    id: str
    revisionable_type: RevisableKind
    revisionable_id: str
    version: str
    changes_summary: Optional[str] = None
    old_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    change_type: ChangeType
    changed_by: Optional[str] = None
    changed_by_user: Optional[UserSummary] = None
    changed_at: datetime
    change_reason: Optional[str] = None
    is_major_change: bool

    model_config = ConfigDict(from_attributes=True)


class RevisionBrief(BaseModel):
    """Revision row nested under an entity detail; snapshots omitted."""

    id: str
    version: str
    changes_summary: Optional[str] = None
    change_type: ChangeType
    changed_by_user: Optional[UserSummary] = None
    changed_at: datetime
    change_reason: Optional[str] = None
    is_major_change: bool

    model_config = ConfigDict(from_attributes=True)


class RevisionWithSubject(RevisionRead):
    subject_exists: bool
