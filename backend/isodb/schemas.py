# backend/isodb/schemas.py
"""
Compact shapes nested inside other apps' responses.

Manuals embed procedures and documents, procedures embed their section and
manual, and so on; keeping the small read models here avoids import cycles
between the app schema modules.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from isodb.apps.documents.models import DocumentStatus, DocumentType
from isodb.apps.manuals.models import ManualStatus, SectionType
from isodb.apps.procedures.models import ProcedureStatus


class ManualBrief(BaseModel):
    id: str
    title: str
    iso_standard: Optional[str] = None
    version: str
    status: ManualStatus

    model_config = ConfigDict(from_attributes=True)


class SectionBrief(BaseModel):
    id: str
    manual_id: str
    parent_section_id: Optional[str] = None
    section_number: str
    full_section_number: str
    title: str
    order_index: int
    section_type: SectionType

    model_config = ConfigDict(from_attributes=True)


class ProcedureBrief(BaseModel):
    id: str
    section_id: str
    procedure_code: str
    title: str
    status: ProcedureStatus
    version: str
    owner_id: Optional[str] = None
    review_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentBrief(BaseModel):
    id: str
    manual_id: str
    section_id: Optional[str] = None
    procedure_id: Optional[str] = None
    document_code: str
    title: str
    document_type: DocumentType
    status: DocumentStatus
    version: str
    file_name: Optional[str] = None
    file_size_human: str
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


def reject_null(value):
    """Partial updates may omit a required column but not clear it."""
    if value is None:
        raise ValueError("may be omitted but cannot be null")
    return value
