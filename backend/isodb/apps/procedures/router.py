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
from .schemas import ProcedureCreate, ProcedureDetail, ProcedureListItem, ProcedureRead, ProcedureUpdate

router = APIRouter(prefix="/procedures", tags=["procedures"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=Page[ProcedureListItem])
def list_procedures(
    section_id: Optional[str] = None,
    manual_id: Optional[str] = None,
    status_filter: Optional[models.ProcedureStatus] = Query(default=None, alias="status"),
    owner_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_read_db),
):
    query = services.procedures_query(
        db,
        section_id=section_id,
        manual_id=manual_id,
        status=status_filter,
        owner_id=owner_id,
        search=search,
    )
    return paginate(query, page=page, per_page=per_page)


@router.post("", response_model=ProcedureRead, status_code=status.HTTP_201_CREATED)
def create_procedure(
    payload: ProcedureCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    return services.create_procedure(db, payload, actor_user_id=current_user.id)


@router.get("/{procedure_id}", response_model=ProcedureDetail)
def get_procedure(procedure_id: str, db: Session = Depends(get_read_db)):
    procedure = services.get_procedure(db, procedure_id)
    return ProcedureDetail.model_validate(procedure)


@router.put("/{procedure_id}", response_model=ProcedureRead)
def update_procedure(
    procedure_id: str,
    payload: ProcedureUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    procedure = services.get_procedure(db, procedure_id)
    return services.update_procedure(db, procedure, payload, actor_user_id=current_user.id)


@router.delete("/{procedure_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_procedure(
    procedure_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    procedure = services.get_procedure(db, procedure_id)
    services.delete_procedure(db, procedure, actor_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{procedure_id}/submit-for-review", response_model=ProcedureRead)
def submit_for_review(
    procedure_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    procedure = services.get_procedure(db, procedure_id)
    return services.submit_procedure_for_review(
        db,
        procedure,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )


@router.post("/{procedure_id}/approve", response_model=ProcedureRead)
def approve(
    procedure_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_approver),
):
    procedure = services.get_procedure(db, procedure_id)
    return services.approve_procedure(
        db,
        procedure,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )


@router.post("/{procedure_id}/obsolete", response_model=ProcedureRead)
def obsolete(
    procedure_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_approver),
):
    procedure = services.get_procedure(db, procedure_id)
    return services.obsolete_procedure(
        db,
        procedure,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )
