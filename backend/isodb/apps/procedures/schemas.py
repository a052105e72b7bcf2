from __future__ import annotations

from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from isodb.apps.accounts.schemas import UserSummary
from isodb.apps.revisions.schemas import RevisionBrief
from isodb.schemas import DocumentBrief, ManualBrief, SectionBrief, reject_null

from .models import ProcedureStatus


class ProcedureBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    purpose: Optional[str] = None
    scope: Optional[str] = None
    procedure_steps: Optional[str] = None
    responsibilities: Optional[str] = None
    references: Optional[str] = None
    records: Optional[str] = None
    review_date: Optional[date] = None
    effective_date: Optional[date] = None
    attachments: Optional[List[Any]] = None


class ProcedureCreate(ProcedureBase):
    section_id: str
    procedure_code: str = Field(..., min_length=1, max_length=50)
    version: Optional[str] = Field(default=None, max_length=20)
    owner_id: Optional[str] = None


class ProcedureUpdate(BaseModel):
    procedure_code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    purpose: Optional[str] = None
    scope: Optional[str] = None
    procedure_steps: Optional[str] = None
    responsibilities: Optional[str] = None
    references: Optional[str] = None
    records: Optional[str] = None
    owner_id: Optional[str] = None
    review_date: Optional[date] = None
    effective_date: Optional[date] = None
    attachments: Optional[List[Any]] = None
    change_reason: Optional[str] = None

    @field_validator("procedure_code", "title")
    @classmethod
    def _required_columns(cls, value):
        return reject_null(value)


class ProcedureRead(ProcedureBase):
    id: str
    section_id: str
    procedure_code: str
    status: ProcedureStatus
    version: str
    owner_id: Optional[str] = None
    owner: Optional[UserSummary] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SectionWithManual(SectionBrief):
    manual: ManualBrief


class ProcedureListItem(ProcedureRead):
    section: SectionWithManual


class ProcedureDetail(ProcedureListItem):
    documents: List[DocumentBrief] = []
    revisions: List[RevisionBrief] = []
