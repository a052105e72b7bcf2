from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from isodb.apps.accounts.schemas import UserSummary
from isodb.apps.revisions.schemas import RevisionBrief
from isodb.schemas import ManualBrief, ProcedureBrief, SectionBrief, reject_null

from .models import DocumentStatus, DocumentType


class FileMetadata(BaseModel):
    file_path: Optional[str] = Field(default=None, max_length=500)
    file_name: Optional[str] = Field(default=None, max_length=255)
    file_type: Optional[str] = Field(default=None, max_length=10)
    file_size: Optional[int] = Field(default=None, ge=0)


class DocumentCreate(FileMetadata):
    manual_id: str
    section_id: Optional[str] = None
    procedure_id: Optional[str] = None
    document_code: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    document_type: DocumentType = DocumentType.OTHER
    version: Optional[str] = Field(default=None, max_length=20)
    review_date: Optional[date] = None
    tags: Optional[List[str]] = None


class DocumentUpdate(FileMetadata):
    section_id: Optional[str] = None
    procedure_id: Optional[str] = None
    document_code: Optional[str] = Field(default=None, min_length=1, max_length=50)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    document_type: Optional[DocumentType] = None
    review_date: Optional[date] = None
    tags: Optional[List[str]] = None
    change_reason: Optional[str] = None

    @field_validator("document_code", "title", "document_type")
    @classmethod
    def _required_columns(cls, value):
        return reject_null(value)


class DocumentRead(FileMetadata):
    id: str
    manual_id: str
    section_id: Optional[str] = None
    procedure_id: Optional[str] = None
    document_code: str
    title: str
    description: Optional[str] = None
    document_type: DocumentType
    file_size_human: str
    version: str
    status: DocumentStatus
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    review_date: Optional[date] = None
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DocumentListItem(DocumentRead):
    manual: ManualBrief
    creator: Optional[UserSummary] = None


class DocumentDetail(DocumentListItem):
    section: Optional[SectionBrief] = None
    procedure: Optional[ProcedureBrief] = None
    approver: Optional[UserSummary] = None
    revisions: List[RevisionBrief] = []
