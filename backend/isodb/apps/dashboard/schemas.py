from __future__ import annotations

from typing import List

from pydantic import BaseModel

from isodb.apps.manuals.schemas import ManualRead


class DashboardStats(BaseModel):
    total_manuals: int
    approved_manuals: int
    draft_manuals: int
    review_manuals: int
    total_sections: int
    total_procedures: int
    total_documents: int


class DashboardOut(BaseModel):
    stats: DashboardStats
    recent_manuals: List[ManualRead]
    upcoming_reviews: List[ManualRead]
