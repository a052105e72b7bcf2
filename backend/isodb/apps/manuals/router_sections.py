from __future__ import annotations

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from isodb.apps.accounts.models import User
from isodb.database import get_db, get_read_db
from isodb.pagination import Page, paginate
from isodb.security import get_current_active_user, require_editor

from . import services
from .schemas import ReorderRequest, SectionCreate, SectionDetail, SectionRead, SectionUpdate

router = APIRouter(prefix="/sections", tags=["sections"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=Union[List[SectionRead], Page[SectionRead]])
def list_sections(
    manual_id: Optional[str] = None,
    parent_section_id: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, ge=1),
    db: Session = Depends(get_read_db),
):
    """
    With `manual_id`, the manual's outline in display order (top level
    unless `parent_section_id` narrows it). Without it, a paged search.
    """
    if manual_id:
        query = services.sections_query(
            db,
            manual_id=manual_id,
            parent_section_id=parent_section_id,
            top_level_only=True,
            search=search,
        )
        return query.all()
    query = services.sections_query(db, parent_section_id=parent_section_id, search=search)
    return paginate(query, page=page, per_page=per_page)


@router.post("", response_model=SectionRead, status_code=status.HTTP_201_CREATED)
def create_section(
    payload: SectionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    return services.create_section(db, payload, actor_user_id=current_user.id)


@router.post("/reorder", response_model=List[SectionRead])
def reorder_sections(
    payload: ReorderRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    return services.reorder_sections(db, payload.sections, actor_user_id=current_user.id)


@router.get("/{section_id}", response_model=SectionDetail)
def get_section(section_id: str, db: Session = Depends(get_read_db)):
    section = services.get_section(db, section_id)
    return SectionDetail.model_validate(section)


@router.put("/{section_id}", response_model=SectionRead)
def update_section(
    section_id: str,
    payload: SectionUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    section = services.get_section(db, section_id)
    return services.update_section(db, section, payload, actor_user_id=current_user.id)


@router.delete("/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_section(
    section_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_editor),
):
    section = services.get_section(db, section_id)
    services.delete_section(db, section, actor_user_id=current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
