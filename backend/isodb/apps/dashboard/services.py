from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, joinedload

from isodb.apps.documents.models import Document
from isodb.apps.manuals.models import Manual, ManualSection, ManualStatus
from isodb.apps.procedures.models import Procedure

RECENT_LIMIT = 5
REVIEW_HORIZON_DAYS = 30


def manual_stats(db: Session) -> Dict[str, int]:
    def _count_status(status: ManualStatus) -> int:
        return db.query(Manual).filter(Manual.status == status).count()

    return {
        "total_manuals": db.query(Manual).count(),
        "approved_manuals": _count_status(ManualStatus.APPROVED),
        "draft_manuals": _count_status(ManualStatus.DRAFT),
        "review_manuals": _count_status(ManualStatus.REVIEW),
        "total_sections": db.query(ManualSection).count(),
        "total_procedures": db.query(Procedure).count(),
        "total_documents": db.query(Document).count(),
    }


def recent_manuals(db: Session, *, limit: int = RECENT_LIMIT) -> List[Manual]:
    return (
        db.query(Manual)
        .options(joinedload(Manual.creator))
        .order_by(Manual.created_at.desc(), Manual.id.desc())
        .limit(limit)
        .all()
    )


def upcoming_reviews(
    db: Session,
    *,
    today: Optional[date] = None,
    limit: int = RECENT_LIMIT,
) -> List[Manual]:
    """Approved manuals due for review within the horizon, overdue ones included."""
    horizon = (today or date.today()) + timedelta(days=REVIEW_HORIZON_DAYS)
    return (
        db.query(Manual)
        .options(joinedload(Manual.creator))
        .filter(
            Manual.status == ManualStatus.APPROVED,
            Manual.review_date.isnot(None),
            Manual.review_date <= horizon,
        )
        .order_by(Manual.review_date.asc())
        .limit(limit)
        .all()
    )


def dashboard(db: Session, *, today: Optional[date] = None) -> dict:
    return {
        "stats": manual_stats(db),
        "recent_manuals": recent_manuals(db),
        "upcoming_reviews": upcoming_reviews(db, today=today),
    }
