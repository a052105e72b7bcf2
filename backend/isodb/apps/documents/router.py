from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from isodb.apps.accounts.models import User
from isodb.apps.manuals.schemas import WorkflowActionRequest
from isodb.database import get_db, get_read_db
from isodb.pagination import Page, paginate
from isodb.security import get_current_active_user, require_approver, require_editor

from . import models, services
from .schemas import DocumentCreate, DocumentDetail, DocumentListItem, DocumentRead, DocumentUpdate

router = APIRouter(prefix="/documents", tags=["documents"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=Page[DocumentListItem])
def list_documents(
    manual_id: Optional[str] = None,
    section_id: Optional[str] = None,
    procedure_id: Optional[str] = None,
    document_type: Optional[models.DocumentType] = None,
    status_filter: Optional[models.DocumentStatus] = Query(default=None, alias="status"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_read_db),
):
    query = services.documents_query(
        db,
        manual_id=manual_id,
        section_id=section_id,
        procedure_id=procedure_id,
        document_type=document_type,
        status=status_filter,
        search=search,
    )
    return paginate(query, page=page, per_page=per_page)


@router.post("", response_model=DocumentRead, status_code=status.HTTP_201_CREATED)
def create_document(
    payload: DocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    return services.create_document(db, payload, actor_user_id=current_user.id)


@router.get("/{document_id}", response_model=DocumentDetail)
def get_document(document_id: str, db: Session = Depends(get_read_db)):
    document = services.get_document(db, document_id)
    return DocumentDetail.model_validate(document)


@router.put("/{document_id}", response_model=DocumentRead)
def update_document(
    document_id: str,
    payload: DocumentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    document = services.get_document(db, document_id)
    return services.update_document(db, document, payload, actor_user_id=current_user.id)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    document = services.get_document(db, document_id)
    services.delete_document(db, document, actor_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{document_id}/submit-for-review", response_model=DocumentRead)
def submit_for_review(
    document_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    document = services.get_document(db, document_id)
    return services.submit_document_for_review(
        db,
        document,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )


@router.post("/{document_id}/approve", response_model=DocumentRead)
def approve(
    document_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_approver),
):
    document = services.get_document(db, document_id)
    return services.approve_document(
        db,
        document,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )


@router.post("/{document_id}/obsolete", response_model=DocumentRead)
def obsolete(
    document_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_approver),
):
    document = services.get_document(db, document_id)
    return services.obsolete_document(
        db,
        document,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )
