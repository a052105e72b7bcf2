from __future__ import annotations

from typing import Dict, List

from sqlalchemy.orm import Session, joinedload

from isodb.apps.documents import services as document_services
from isodb.apps.manuals import models as manual_models
from isodb.apps.manuals import services as manual_services
from isodb.apps.procedures import services as procedure_services

GLOBAL_RESULT_LIMIT = 10
CATEGORIES = ("manuals", "sections", "procedures", "documents")


def empty_results() -> Dict[str, List]:
    return {category: [] for category in CATEGORIES}


def search_manuals(db: Session, term: str, *, limit: int = GLOBAL_RESULT_LIMIT) -> List:
    return manual_services.manuals_query(db, search=term).limit(limit).all()


def search_sections(db: Session, term: str, *, limit: int = GLOBAL_RESULT_LIMIT) -> List:
    query = manual_services.sections_query(db, search=term).options(
        joinedload(manual_models.ManualSection.manual)
    )
    return query.limit(limit).all()


def search_procedures(db: Session, term: str, *, limit: int = GLOBAL_RESULT_LIMIT) -> List:
    return procedure_services.procedures_query(db, search=term).limit(limit).all()


def search_documents(db: Session, term: str, *, limit: int = GLOBAL_RESULT_LIMIT) -> List:
    return document_services.documents_query(db, search=term).limit(limit).all()


def global_search(db: Session, term: str | None) -> Dict[str, List]:
    """
    Substring match across manuals, sections, procedures and documents,
    capped per category. A blank term matches nothing.
    """
    term = (term or "").strip()
    if not term:
        return empty_results()
    return {
        "manuals": search_manuals(db, term),
        "sections": search_sections(db, term),
        "procedures": search_procedures(db, term),
        "documents": search_documents(db, term),
    }
