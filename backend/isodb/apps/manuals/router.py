from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from isodb.apps.accounts.models import User
from isodb.database import get_db, get_read_db
from isodb.pagination import Page, paginate
from isodb.security import get_current_active_user, require_approver, require_editor

from . import models, services
from .schemas import (
    ManualCreate,
    ManualDetail,
    ManualListItem,
    ManualRead,
    ManualUpdate,
    SectionNode,
    WorkflowActionRequest,
)

router = APIRouter(prefix="/manuals", tags=["manuals"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=Page[ManualListItem])
def list_manuals(
    status_filter: Optional[models.ManualStatus] = Query(default=None, alias="status"),
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_read_db),
):
    query = services.manuals_query(db, status=status_filter, search=search)
    return paginate(query, page=page, per_page=per_page)


@router.post("", response_model=ManualRead, status_code=status.HTTP_201_CREATED)
def create_manual(
    payload: ManualCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    return services.create_manual(db, payload, actor_user_id=current_user.id)


@router.get("/{manual_id}", response_model=ManualDetail)
def get_manual(manual_id: str, db: Session = Depends(get_read_db)):
    manual = services.get_manual(db, manual_id)
    return ManualDetail.model_validate(manual)


@router.get("/{manual_id}/tree", response_model=List[SectionNode])
def get_manual_tree(manual_id: str, db: Session = Depends(get_read_db)):
    manual = services.get_manual(db, manual_id)
    return [SectionNode.model_validate(section) for section in services.section_tree(db, manual)]


@router.put("/{manual_id}", response_model=ManualRead)
def update_manual(
    manual_id: str,
    payload: ManualUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    manual = services.get_manual(db, manual_id)
    return services.update_manual(db, manual, payload, actor_user_id=current_user.id)


@router.delete("/{manual_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_manual(
    manual_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    manual = services.get_manual(db, manual_id)
    services.delete_manual(db, manual, actor_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{manual_id}/submit-for-review", response_model=ManualRead)
def submit_for_review(
    manual_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    manual = services.get_manual(db, manual_id)
    return services.submit_manual_for_review(
        db,
        manual,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )


@router.post("/{manual_id}/approve", response_model=ManualRead)
def approve(
    manual_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_approver),
):
    manual = services.get_manual(db, manual_id)
    return services.approve_manual(
        db,
        manual,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )


@router.post("/{manual_id}/archive", response_model=ManualRead)
def archive(
    manual_id: str,
    payload: Optional[WorkflowActionRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_approver),
):
    manual = services.get_manual(db, manual_id)
    return services.archive_manual(
        db,
        manual,
        actor_user_id=current_user.id,
        reason=payload.change_reason if payload else None,
    )
