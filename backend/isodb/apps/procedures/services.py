from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from isodb.apps.manuals import models as manual_models
from isodb.apps.manuals.services import get_section
from isodb.apps.revisions import revisable
from isodb.apps.revisions import services as revision_services
from isodb.apps.revisions.models import ChangeType
from isodb.apps.workflow import ensure_editable
from isodb.apps.workflow.transitions import transition_entity
from isodb.errors import NotFoundError, commit_or_conflict
from isodb.utils.identifiers import normalise_code

from . import models, schemas

logger = logging.getLogger(__name__)

PROCEDURE_SEARCH_FIELDS = (
    models.Procedure.title,
    models.Procedure.procedure_code,
    models.Procedure.purpose,
    models.Procedure.scope,
)


def get_procedure(db: Session, procedure_id: str) -> models.Procedure:
    procedure = db.query(models.Procedure).filter(models.Procedure.id == procedure_id).first()
    if procedure is None:
        raise NotFoundError("Procedure", procedure_id)
    return procedure


def procedures_query(
    db: Session,
    *,
    section_id: Optional[str] = None,
    manual_id: Optional[str] = None,
    status: Optional[models.ProcedureStatus] = None,
    owner_id: Optional[str] = None,
    search: Optional[str] = None,
) -> Query:
    query = db.query(models.Procedure).options(
        joinedload(models.Procedure.section).joinedload(manual_models.ManualSection.manual),
        joinedload(models.Procedure.owner),
    )
    if section_id:
        query = query.filter(models.Procedure.section_id == section_id)
    if manual_id:
        query = query.join(models.Procedure.section).filter(manual_models.ManualSection.manual_id == manual_id)
    if status is not None:
        query = query.filter(models.Procedure.status == status)
    if owner_id:
        query = query.filter(models.Procedure.owner_id == owner_id)
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(*(field.ilike(like) for field in PROCEDURE_SEARCH_FIELDS)))
    return query.order_by(models.Procedure.procedure_code.asc())


def create_procedure(
    db: Session,
    data: schemas.ProcedureCreate,
    *,
    actor_user_id: Optional[str],
) -> models.Procedure:
    section = get_section(db, data.section_id)
    ensure_editable(section.manual.status, entity_type="manual", entity_id=section.manual_id)

    fields = data.model_dump(exclude={"section_id", "procedure_code", "version", "owner_id"})
    procedure = models.Procedure(
        section_id=section.id,
        procedure_code=normalise_code(data.procedure_code),
        version=data.version or models.DEFAULT_VERSION,
        status=models.ProcedureStatus.DRAFT,
        owner_id=data.owner_id or actor_user_id,
        **fields,
    )
    db.add(procedure)
    revision_services.record_change(db, procedure, change_type=ChangeType.CREATED, actor_user_id=actor_user_id)
    logger.info("Procedure created", extra={"procedure_id": procedure.id, "section_id": section.id})
    return procedure


def update_procedure(
    db: Session,
    procedure: models.Procedure,
    data: schemas.ProcedureUpdate,
    *,
    actor_user_id: Optional[str],
) -> models.Procedure:
    ensure_editable(procedure.status, entity_type="procedure", entity_id=procedure.id)

    fields = data.model_dump(exclude_unset=True)
    reason = fields.pop("change_reason", None)
    if fields.get("procedure_code"):
        fields["procedure_code"] = normalise_code(fields["procedure_code"])

    before = revisable.snapshot(procedure)
    for field, value in fields.items():
        setattr(procedure, field, value)

    revision_services.record_change(
        db,
        procedure,
        change_type=ChangeType.UPDATED,
        actor_user_id=actor_user_id,
        before=before,
        reason=reason,
    )
    return procedure


def delete_procedure(db: Session, procedure: models.Procedure, *, actor_user_id: Optional[str]) -> None:
    manual = procedure.section.manual
    ensure_editable(manual.status, entity_type="manual", entity_id=manual.id)
    procedure_id = procedure.id
    db.delete(procedure)
    commit_or_conflict(db)
    logger.info("Procedure deleted", extra={"procedure_id": procedure_id, "actor_user_id": actor_user_id})


def submit_procedure_for_review(
    db: Session,
    procedure: models.Procedure,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Procedure:
    return transition_entity(
        db,
        procedure,
        entity_type="procedure",
        to_state=models.ProcedureStatus.REVIEW,
        actor_user_id=actor_user_id,
        reason=reason,
    )


def approve_procedure(
    db: Session,
    procedure: models.Procedure,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Procedure:
    return transition_entity(
        db,
        procedure,
        entity_type="procedure",
        to_state=models.ProcedureStatus.APPROVED,
        actor_user_id=actor_user_id,
        change_type=ChangeType.APPROVED,
        reason=reason,
    )


def obsolete_procedure(
    db: Session,
    procedure: models.Procedure,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Procedure:
    return transition_entity(
        db,
        procedure,
        entity_type="procedure",
        to_state=models.ProcedureStatus.OBSOLETE,
        actor_user_id=actor_user_id,
        change_type=ChangeType.ARCHIVED,
        reason=reason,
    )
