from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from isodb.database import get_read_db
from isodb.security import get_current_active_user

from . import services
from .schemas import DashboardOut

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(get_current_active_user)])


@router.get("", response_model=DashboardOut)
def read_dashboard(db: Session = Depends(get_read_db)):
    return DashboardOut.model_validate(services.dashboard(db), from_attributes=True)
