from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from isodb.errors import commit_or_conflict

from . import revisable
from .models import DEFAULT_VERSION, ChangeType, RevisableKind, Revision

logger = logging.getLogger(__name__)


@dataclass
class StagedChange:
    entity: Any
    kind: RevisableKind
    old_data: revisable.Snapshot
    summary: str
    is_major: bool


def stage_change(entity: Any, *, change_type: ChangeType, before: Optional[revisable.Snapshot]) -> StagedChange:
    """
    Classify a pending mutation and apply the version bump in the same write.

    Must be called after the caller has set the new attribute values but
    before the commit. Creates never bump; entities without a `version`
    column are classified but left alone.
    """
    old_data = dict(before or {})
    pending = revisable.snapshot(entity)
    is_major = revisable.is_major_change(old_data, pending)
    if is_major and change_type != ChangeType.CREATED and hasattr(entity, "version"):
        entity.version = revisable.next_version(entity.version)
    return StagedChange(
        entity=entity,
        kind=revisable.kind_of(entity),
        old_data=old_data,
        summary=revisable.summarize_changes(old_data, pending),
        is_major=is_major,
    )


def write_revisions(
    db: Session,
    staged: Sequence[StagedChange],
    *,
    change_type: ChangeType,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
    critical: bool = False,
) -> List[Revision]:
    """
    Persist one Revision per staged change, in one commit.

    The owning mutations are already committed. A failure here is logged
    and, unless `critical`, swallowed so the business change stands.
    """
    revisions: List[Revision] = []
    try:
        for change in staged:
            entity = change.entity
            revision = Revision(
                revisionable_type=change.kind.value,
                revisionable_id=entity.id,
                version=getattr(entity, "version", None) or DEFAULT_VERSION,
                changes_summary=change.summary,
                old_data=change.old_data,
                new_data=revisable.snapshot(entity),
                change_type=change_type,
                changed_by=actor_user_id,
                change_reason=reason,
                is_major_change=change.is_major,
            )
            db.add(revision)
            revisions.append(revision)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(
            "Failed to record revision",
            extra={
                "entities": [f"{change.kind.value}:{change.entity.id}" for change in staged],
                "change_type": change_type.value,
                "actor_user_id": actor_user_id,
                "critical": critical,
            },
        )
        if critical:
            raise
        return []
    return revisions


def record_changes(
    db: Session,
    changes: Sequence[Tuple[Any, Optional[revisable.Snapshot]]],
    *,
    change_type: ChangeType,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
    critical: bool = False,
) -> List[Revision]:
    """
    Commit a batch of already-applied mutations as one unit, then log them.

    `changes` pairs each entity with its snapshot from before the mutation
    (None for creates).
    """
    staged = [stage_change(entity, change_type=change_type, before=before) for entity, before in changes]
    commit_or_conflict(db)
    for change in staged:
        db.refresh(change.entity)
    return write_revisions(
        db,
        staged,
        change_type=change_type,
        actor_user_id=actor_user_id,
        reason=reason,
        critical=critical,
    )


def record_change(
    db: Session,
    entity: Any,
    *,
    change_type: ChangeType,
    actor_user_id: Optional[str],
    before: Optional[revisable.Snapshot] = None,
    reason: Optional[str] = None,
    critical: bool = False,
) -> Optional[Revision]:
    revisions = record_changes(
        db,
        [(entity, before)],
        change_type=change_type,
        actor_user_id=actor_user_id,
        reason=reason,
        critical=critical,
    )
    return revisions[0] if revisions else None


def list_revisions(
    db: Session,
    *,
    kind: Optional[RevisableKind] = None,
    entity_id: Optional[str] = None,
) -> List[Revision]:
    query = db.query(Revision)
    if kind is not None:
        query = query.filter(Revision.revisionable_type == kind.value)
    if entity_id:
        query = query.filter(Revision.revisionable_id == entity_id)
    return query.order_by(Revision.changed_at.desc(), Revision.id.desc()).all()


def get_revision(db: Session, revision_id: str) -> Optional[Revision]:
    return db.query(Revision).filter(Revision.id == revision_id).first()
