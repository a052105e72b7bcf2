from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from isodb.apps.documents.schemas import DocumentListItem
from isodb.apps.manuals.schemas import ManualRead
from isodb.apps.procedures.schemas import ProcedureListItem
from isodb.database import get_read_db
from isodb.security import get_current_active_user

from . import services
from .schemas import GlobalSearchResult

router = APIRouter(prefix="/search", tags=["search"], dependencies=[Depends(get_current_active_user)])

MAX_ENTITY_RESULTS = 50


@router.get("/global", response_model=GlobalSearchResult)
def global_search(
    q: Optional[str] = None,
    db: Session = Depends(get_read_db),
):
    return GlobalSearchResult.model_validate(services.global_search(db, q), from_attributes=True)


@router.get("/manuals", response_model=List[ManualRead])
def search_manuals(
    q: str = "",
    limit: int = Query(default=services.GLOBAL_RESULT_LIMIT, ge=1, le=MAX_ENTITY_RESULTS),
    db: Session = Depends(get_read_db),
):
    if not q.strip():
        return []
    return services.search_manuals(db, q, limit=limit)


@router.get("/procedures", response_model=List[ProcedureListItem])
def search_procedures(
    q: str = "",
    limit: int = Query(default=services.GLOBAL_RESULT_LIMIT, ge=1, le=MAX_ENTITY_RESULTS),
    db: Session = Depends(get_read_db),
):
    if not q.strip():
        return []
    return services.search_procedures(db, q, limit=limit)


@router.get("/documents", response_model=List[DocumentListItem])
def search_documents(
    q: str = "",
    limit: int = Query(default=services.GLOBAL_RESULT_LIMIT, ge=1, le=MAX_ENTITY_RESULTS),
    db: Session = Depends(get_read_db),
):
    if not q.strip():
        return []
    return services.search_documents(db, q, limit=limit)
