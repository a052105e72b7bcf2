from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload, selectinload

from isodb.apps.revisions import revisable
from isodb.apps.revisions import services as revision_services
from isodb.apps.revisions.models import ChangeType
from isodb.apps.workflow import ensure_editable
from isodb.apps.workflow.transitions import approval_updates, transition_entity
from isodb.errors import DomainValidationError, NotFoundError, WorkflowViolation, commit_or_conflict

from . import models, schemas

logger = logging.getLogger(__name__)

MANUAL_SEARCH_FIELDS = (models.Manual.title, models.Manual.iso_standard, models.Manual.description)
SECTION_SEARCH_FIELDS = (models.ManualSection.title, models.ManualSection.content, models.ManualSection.section_number)


def _like(term: str) -> str:
    return f"%{term.strip()}%"


# ---------------------------------------------------------------------------
# Manuals
# ---------------------------------------------------------------------------


def get_manual(db: Session, manual_id: str) -> models.Manual:
    manual = db.query(models.Manual).filter(models.Manual.id == manual_id).first()
    if manual is None:
        raise NotFoundError("Manual", manual_id)
    return manual


def manuals_query(
    db: Session,
    *,
    status: Optional[models.ManualStatus] = None,
    search: Optional[str] = None,
) -> Query:
    query = db.query(models.Manual).options(
        joinedload(models.Manual.creator),
        joinedload(models.Manual.approver),
        selectinload(models.Manual.sections),
    )
    if status is not None:
        query = query.filter(models.Manual.status == status)
    if search and search.strip():
        like = _like(search)
        query = query.filter(or_(*(field.ilike(like) for field in MANUAL_SEARCH_FIELDS)))
    return query.order_by(models.Manual.created_at.desc(), models.Manual.id.desc())


def create_manual(
    db: Session,
    data: schemas.ManualCreate,
    *,
    actor_user_id: Optional[str],
) -> models.Manual:
    manual = models.Manual(
        title=data.title.strip(),
        iso_standard=data.iso_standard,
        description=data.description,
        version=data.version or models.DEFAULT_VERSION,
        status=models.ManualStatus.DRAFT,
        created_by=actor_user_id,
        effective_date=data.effective_date,
        review_date=data.review_date,
        metadata_json=data.metadata,
    )
    db.add(manual)
    revision_services.record_change(db, manual, change_type=ChangeType.CREATED, actor_user_id=actor_user_id)
    logger.info("Manual created", extra={"manual_id": manual.id, "actor_user_id": actor_user_id})
    return manual


def update_manual(
    db: Session,
    manual: models.Manual,
    data: schemas.ManualUpdate,
    *,
    actor_user_id: Optional[str],
) -> models.Manual:
    ensure_editable(manual.status, entity_type="manual", entity_id=manual.id)

    fields = data.model_dump(exclude_unset=True)
    reason = fields.pop("change_reason", None)
    if "metadata" in fields:
        fields["metadata_json"] = fields.pop("metadata")

    before = revisable.snapshot(manual)
    for field, value in fields.items():
        setattr(manual, field, value)

    revision_services.record_change(
        db,
        manual,
        change_type=ChangeType.UPDATED,
        actor_user_id=actor_user_id,
        before=before,
        reason=reason,
    )
    return manual


def delete_manual(db: Session, manual: models.Manual, *, actor_user_id: Optional[str]) -> None:
    """Delete a manual with its sections, procedures and documents. Approved manuals are kept."""
    if manual.status == models.ManualStatus.APPROVED:
        raise WorkflowViolation(
            "Approved manuals cannot be deleted",
            code="delete_forbidden",
            detail=[{"field": "status", "reason": "manual is approved"}],
        )
    manual_id = manual.id
    db.delete(manual)
    commit_or_conflict(db)
    logger.info("Manual deleted", extra={"manual_id": manual_id, "actor_user_id": actor_user_id})


def submit_manual_for_review(
    db: Session,
    manual: models.Manual,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Manual:
    return transition_entity(
        db,
        manual,
        entity_type="manual",
        to_state=models.ManualStatus.REVIEW,
        actor_user_id=actor_user_id,
        reason=reason,
    )


def approve_manual(
    db: Session,
    manual: models.Manual,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Manual:
    return transition_entity(
        db,
        manual,
        entity_type="manual",
        to_state=models.ManualStatus.APPROVED,
        actor_user_id=actor_user_id,
        change_type=ChangeType.APPROVED,
        updates=approval_updates(actor_user_id),
        reason=reason,
    )


def archive_manual(
    db: Session,
    manual: models.Manual,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Manual:
    return transition_entity(
        db,
        manual,
        entity_type="manual",
        to_state=models.ManualStatus.ARCHIVED,
        actor_user_id=actor_user_id,
        change_type=ChangeType.ARCHIVED,
        reason=reason,
    )


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


def get_section(db: Session, section_id: str) -> models.ManualSection:
    section = db.query(models.ManualSection).filter(models.ManualSection.id == section_id).first()
    if section is None:
        raise NotFoundError("Section", section_id)
    return section


def sections_query(
    db: Session,
    *,
    manual_id: Optional[str] = None,
    parent_section_id: Optional[str] = None,
    top_level_only: bool = False,
    search: Optional[str] = None,
) -> Query:
    query = db.query(models.ManualSection).options(
        selectinload(models.ManualSection.children),
        selectinload(models.ManualSection.procedures),
    )
    if manual_id:
        query = query.filter(models.ManualSection.manual_id == manual_id)
    if parent_section_id:
        query = query.filter(models.ManualSection.parent_section_id == parent_section_id)
    elif top_level_only:
        query = query.filter(models.ManualSection.parent_section_id.is_(None))
    if search and search.strip():
        like = _like(search)
        query = query.filter(or_(*(field.ilike(like) for field in SECTION_SEARCH_FIELDS)))
    return query.order_by(models.ManualSection.order_index.asc(), models.ManualSection.section_number.asc())


def _invalid_parent(reason: str) -> DomainValidationError:
    return DomainValidationError(
        "Invalid parent section",
        code="invalid_parent",
        detail=[{"field": "parent_section_id", "reason": reason}],
    )


def validate_parent(
    db: Session,
    *,
    manual_id: str,
    parent_section_id: str,
    section: Optional[models.ManualSection] = None,
) -> models.ManualSection:
    """
    Load the proposed parent and reject links that leave the manual or
    would make `section` its own ancestor.
    """
    parent = (
        db.query(models.ManualSection)
        .filter(models.ManualSection.id == parent_section_id)
        .first()
    )
    if parent is None:
        raise NotFoundError("Parent section", parent_section_id)
    if parent.manual_id != manual_id:
        raise _invalid_parent("parent section belongs to a different manual")
    if section is not None:
        if parent.id == section.id:
            raise _invalid_parent("a section cannot be its own parent")
        if section.id in {ancestor.id for ancestor in parent.ancestors()}:
            raise _invalid_parent("parent section is a descendant of this section")
    return parent


def create_section(
    db: Session,
    data: schemas.SectionCreate,
    *,
    actor_user_id: Optional[str],
) -> models.ManualSection:
    manual = get_manual(db, data.manual_id)
    ensure_editable(manual.status, entity_type="manual", entity_id=manual.id)
    if data.parent_section_id:
        validate_parent(db, manual_id=manual.id, parent_section_id=data.parent_section_id)

    section = models.ManualSection(
        manual_id=manual.id,
        parent_section_id=data.parent_section_id,
        section_number=data.section_number.strip(),
        title=data.title.strip(),
        content=data.content,
        order_index=data.order_index,
        section_type=data.section_type,
        is_required=data.is_required,
        requirements=data.requirements,
    )
    db.add(section)
    revision_services.record_change(db, section, change_type=ChangeType.CREATED, actor_user_id=actor_user_id)
    return section


def update_section(
    db: Session,
    section: models.ManualSection,
    data: schemas.SectionUpdate,
    *,
    actor_user_id: Optional[str],
) -> models.ManualSection:
    ensure_editable(section.manual.status, entity_type="manual", entity_id=section.manual_id)

    fields = data.model_dump(exclude_unset=True)
    reason = fields.pop("change_reason", None)
    if fields.get("parent_section_id"):
        validate_parent(
            db,
            manual_id=section.manual_id,
            parent_section_id=fields["parent_section_id"],
            section=section,
        )

    before = revisable.snapshot(section)
    for field, value in fields.items():
        setattr(section, field, value)

    revision_services.record_change(
        db,
        section,
        change_type=ChangeType.UPDATED,
        actor_user_id=actor_user_id,
        before=before,
        reason=reason,
    )
    return section


def delete_section(db: Session, section: models.ManualSection, *, actor_user_id: Optional[str]) -> None:
    """Delete a section and its descendants; documents filed under them are kept but unlinked."""
    ensure_editable(section.manual.status, entity_type="manual", entity_id=section.manual_id)
    section_id = section.id
    db.delete(section)
    commit_or_conflict(db)
    logger.info("Section deleted", extra={"section_id": section_id, "actor_user_id": actor_user_id})


def reorder_sections(
    db: Session,
    items: Sequence[schemas.ReorderItem],
    *,
    actor_user_id: Optional[str],
) -> List[models.ManualSection]:
    """
    Apply a batch of new `order_index` values in one commit.

    Every id must exist and belong to the same editable manual; otherwise
    nothing is changed. An empty batch is a no-op.
    """
    if not items:
        return []
    ids = [item.id for item in items]
    if len(set(ids)) != len(ids):
        raise DomainValidationError(
            "Each section may appear only once",
            code="invalid_reorder",
            detail=[{"field": "sections", "reason": "duplicate section id"}],
        )

    found: Dict[str, models.ManualSection] = {
        section.id: section
        for section in db.query(models.ManualSection).filter(models.ManualSection.id.in_(ids)).all()
    }
    missing = [section_id for section_id in ids if section_id not in found]
    if missing:
        raise NotFoundError("Section", ", ".join(missing))

    manual_ids = {section.manual_id for section in found.values()}
    if len(manual_ids) > 1:
        raise DomainValidationError(
            "Sections from different manuals cannot be reordered together",
            code="invalid_reorder",
            detail=[{"field": "sections", "reason": "sections belong to different manuals"}],
        )
    manual = get_manual(db, manual_ids.pop())
    ensure_editable(manual.status, entity_type="manual", entity_id=manual.id)

    changes = []
    for item in items:
        section = found[item.id]
        if section.order_index == item.order_index:
            continue
        before = revisable.snapshot(section)
        section.order_index = item.order_index
        changes.append((section, before))

    if changes:
        revision_services.record_changes(
            db,
            changes,
            change_type=ChangeType.UPDATED,
            actor_user_id=actor_user_id,
        )
    logger.info(
        "Sections reordered",
        extra={"manual_id": manual.id, "changed": len(changes), "actor_user_id": actor_user_id},
    )
    return [found[section_id] for section_id in ids]


def section_tree(db: Session, manual: models.Manual) -> List[models.ManualSection]:
    """Top-level sections of `manual`, each with its subtree loaded, in display order."""
    sections = (
        db.query(models.ManualSection)
        .filter(models.ManualSection.manual_id == manual.id)
        .options(
            selectinload(models.ManualSection.procedures),
            selectinload(models.ManualSection.documents),
        )
        .order_by(models.ManualSection.order_index.asc())
        .all()
    )
    return [section for section in sections if section.parent_section_id is None]
