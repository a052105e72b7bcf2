from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session, joinedload

from isodb.apps.manuals import models as manual_models
from isodb.apps.manuals.services import get_manual
from isodb.apps.procedures import models as procedure_models
from isodb.apps.revisions import revisable
from isodb.apps.revisions import services as revision_services
from isodb.apps.revisions.models import ChangeType
from isodb.apps.workflow import ensure_editable
from isodb.apps.workflow.transitions import approval_updates, transition_entity
from isodb.errors import DomainValidationError, NotFoundError, commit_or_conflict
from isodb.utils.identifiers import normalise_code

from . import models, schemas

logger = logging.getLogger(__name__)

DOCUMENT_SEARCH_FIELDS = (
    models.Document.title,
    models.Document.document_code,
    models.Document.description,
)


def get_document(db: Session, document_id: str) -> models.Document:
    document = db.query(models.Document).filter(models.Document.id == document_id).first()
    if document is None:
        raise NotFoundError("Document", document_id)
    return document


def documents_query(
    db: Session,
    *,
    manual_id: Optional[str] = None,
    section_id: Optional[str] = None,
    procedure_id: Optional[str] = None,
    document_type: Optional[models.DocumentType] = None,
    status: Optional[models.DocumentStatus] = None,
    search: Optional[str] = None,
) -> Query:
    query = db.query(models.Document).options(
        joinedload(models.Document.manual),
        joinedload(models.Document.creator),
    )
    if manual_id:
        query = query.filter(models.Document.manual_id == manual_id)
    if section_id:
        query = query.filter(models.Document.section_id == section_id)
    if procedure_id:
        query = query.filter(models.Document.procedure_id == procedure_id)
    if document_type is not None:
        query = query.filter(models.Document.document_type == document_type)
    if status is not None:
        query = query.filter(models.Document.status == status)
    if search and search.strip():
        like = f"%{search.strip()}%"
        query = query.filter(or_(*(field.ilike(like) for field in DOCUMENT_SEARCH_FIELDS)))
    return query.order_by(models.Document.updated_at.desc(), models.Document.id.desc())


def _invalid_link(field: str, reason: str) -> DomainValidationError:
    return DomainValidationError(
        "Document link is invalid",
        code="invalid_link",
        detail=[{"field": field, "reason": reason}],
    )


def _validate_links(
    db: Session,
    *,
    manual_id: str,
    section_id: Optional[str],
    procedure_id: Optional[str],
) -> None:
    """Section and procedure links must point inside the document's manual."""
    if section_id:
        section = db.query(manual_models.ManualSection).filter(manual_models.ManualSection.id == section_id).first()
        if section is None:
            raise NotFoundError("Section", section_id)
        if section.manual_id != manual_id:
            raise _invalid_link("section_id", "section belongs to a different manual")
    if procedure_id:
        procedure = (
            db.query(procedure_models.Procedure)
            .filter(procedure_models.Procedure.id == procedure_id)
            .first()
        )
        if procedure is None:
            raise NotFoundError("Procedure", procedure_id)
        if procedure.section.manual_id != manual_id:
            raise _invalid_link("procedure_id", "procedure belongs to a different manual")


def create_document(
    db: Session,
    data: schemas.DocumentCreate,
    *,
    actor_user_id: Optional[str],
) -> models.Document:
    manual = get_manual(db, data.manual_id)
    ensure_editable(manual.status, entity_type="manual", entity_id=manual.id)
    _validate_links(db, manual_id=manual.id, section_id=data.section_id, procedure_id=data.procedure_id)

    fields = data.model_dump(exclude={"manual_id", "document_code", "version"})
    document = models.Document(
        manual_id=manual.id,
        document_code=normalise_code(data.document_code),
        version=data.version or models.DEFAULT_VERSION,
        status=models.DocumentStatus.DRAFT,
        created_by=actor_user_id,
        **fields,
    )
    db.add(document)
    revision_services.record_change(db, document, change_type=ChangeType.CREATED, actor_user_id=actor_user_id)
    logger.info("Document created", extra={"document_id": document.id, "manual_id": manual.id})
    return document


def update_document(
    db: Session,
    document: models.Document,
    data: schemas.DocumentUpdate,
    *,
    actor_user_id: Optional[str],
) -> models.Document:
    ensure_editable(document.status, entity_type="document", entity_id=document.id)

    fields = data.model_dump(exclude_unset=True)
    reason = fields.pop("change_reason", None)
    if fields.get("document_code"):
        fields["document_code"] = normalise_code(fields["document_code"])
    if "section_id" in fields or "procedure_id" in fields:
        _validate_links(
            db,
            manual_id=document.manual_id,
            section_id=fields.get("section_id"),
            procedure_id=fields.get("procedure_id"),
        )

    before = revisable.snapshot(document)
    for field, value in fields.items():
        setattr(document, field, value)

    revision_services.record_change(
        db,
        document,
        change_type=ChangeType.UPDATED,
        actor_user_id=actor_user_id,
        before=before,
        reason=reason,
    )
    return document


def delete_document(db: Session, document: models.Document, *, actor_user_id: Optional[str]) -> None:
    ensure_editable(document.manual.status, entity_type="manual", entity_id=document.manual_id)
    document_id = document.id
    db.delete(document)
    commit_or_conflict(db)
    logger.info("Document deleted", extra={"document_id": document_id, "actor_user_id": actor_user_id})


def submit_document_for_review(
    db: Session,
    document: models.Document,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Document:
    return transition_entity(
        db,
        document,
        entity_type="document",
        to_state=models.DocumentStatus.REVIEW,
        actor_user_id=actor_user_id,
        reason=reason,
    )


def approve_document(
    db: Session,
    document: models.Document,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Document:
    return transition_entity(
        db,
        document,
        entity_type="document",
        to_state=models.DocumentStatus.APPROVED,
        actor_user_id=actor_user_id,
        change_type=ChangeType.APPROVED,
        updates=approval_updates(actor_user_id),
        reason=reason,
    )


def obsolete_document(
    db: Session,
    document: models.Document,
    *,
    actor_user_id: Optional[str],
    reason: Optional[str] = None,
) -> models.Document:
    return transition_entity(
        db,
        document,
        entity_type="document",
        to_state=models.DocumentStatus.OBSOLETE,
        actor_user_id=actor_user_id,
        change_type=ChangeType.ARCHIVED,
        reason=reason,
    )
