"""
Status actions shared by manuals, procedures and documents.

Each action validates the move against WORKFLOWS, applies it and records
exactly one revision for it.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from isodb.apps.revisions import revisable
from isodb.apps.revisions import services as revision_services
from isodb.apps.revisions.models import ChangeType

from .engine import check_transition


def transition_entity(
    db: Session,
    entity: Any,
    *,
    entity_type: str,
    to_state: Any,
    actor_user_id: Optional[str],
    change_type: ChangeType = ChangeType.UPDATED,
    updates: Optional[Dict[str, Any]] = None,
    reason: Optional[str] = None,
) -> Any:
    updates = updates or {}
    before = revisable.snapshot(entity)
    after = {**before, **updates, "status": getattr(to_state, "value", to_state)}

    check_transition(entity_type, entity.status, to_state, after, entity_id=entity.id)

    entity.status = to_state
    for field, value in updates.items():
        setattr(entity, field, value)

    revision_services.record_change(
        db,
        entity,
        change_type=change_type,
        actor_user_id=actor_user_id,
        before=before,
        reason=reason,
    )
    return entity


def approval_updates(actor_user_id: Optional[str]) -> Dict[str, Any]:
    return {"approved_by": actor_user_id, "approved_at": datetime.now(timezone.utc)}
