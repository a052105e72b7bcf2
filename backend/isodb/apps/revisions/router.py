from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from isodb.database import get_read_db
from isodb.errors import NotFoundError
from isodb.security import get_current_active_user

from . import registry, services
from .models import RevisableKind
from .schemas import RevisionRead, RevisionWithSubject

router = APIRouter(prefix="/revisions", tags=["revisions"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=List[RevisionRead])
def list_revisions(
    entity_type: Optional[RevisableKind] = None,
    entity_id: Optional[str] = None,
    db: Session = Depends(get_read_db),
):
    return services.list_revisions(db, kind=entity_type, entity_id=entity_id)


@router.get("/{revision_id}", response_model=RevisionWithSubject)
def get_revision(revision_id: str, db: Session = Depends(get_read_db)):
    revision = services.get_revision(db, revision_id)
    if revision is None:
        raise NotFoundError("Revision", revision_id)
    subject = registry.resolve_revisionable(db, revision)
    payload = RevisionRead.model_validate(revision).model_dump()
    return RevisionWithSubject(**payload, subject_exists=subject is not None)
