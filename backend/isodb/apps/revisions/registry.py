"""
Lookup table from revision type tags to the models that carry them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type

from sqlalchemy.orm import Session

from isodb.apps.documents.models import Document
from isodb.apps.manuals.models import Manual, ManualSection
from isodb.apps.procedures.models import Procedure

from .models import RevisableKind, Revision

REVISABLE_MODELS: Dict[RevisableKind, Type[Any]] = {
    RevisableKind.MANUAL: Manual,
    RevisableKind.SECTION: ManualSection,
    RevisableKind.PROCEDURE: Procedure,
    RevisableKind.DOCUMENT: Document,
}


def model_for(kind: RevisableKind) -> Type[Any]:
    return REVISABLE_MODELS[kind]


def resolve_revisionable(db: Session, revision: Revision) -> Optional[Any]:
    """The entity a revision belongs to, or None once it has been deleted."""
    model = model_for(revision.kind)
    return db.query(model).filter(model.id == revision.revisionable_id).first()
