from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from isodb.apps.accounts.schemas import UserSummary
from isodb.apps.revisions.schemas import RevisionBrief
from isodb.schemas import DocumentBrief, ManualBrief, ProcedureBrief, SectionBrief, reject_null

from .models import ManualStatus, SectionType

Requirements = Union[Dict[str, Any], List[Any]]


# ---------------------------------------------------------------------------
# MANUALS
# ---------------------------------------------------------------------------


class ManualCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    iso_standard: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    version: Optional[str] = Field(default=None, max_length=20)
    effective_date: Optional[date] = None
    review_date: Optional[date] = None
    metadata: Optional[Dict[str, Any]] = None


class ManualUpdate(BaseModel):
    """Partial update; status only moves through the workflow actions."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    iso_standard: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None
    version: Optional[str] = Field(default=None, max_length=20)
    effective_date: Optional[date] = None
    review_date: Optional[date] = None
    metadata: Optional[Dict[str, Any]] = None
    change_reason: Optional[str] = None

    @field_validator("title", "version")
    @classmethod
    def _required_columns(cls, value):
        return reject_null(value)


class WorkflowActionRequest(BaseModel):
    change_reason: Optional[str] = None


class ManualRead(BaseModel):
    id: str
    title: str
    iso_standard: Optional[str] = None
    description: Optional[str] = None
    version: str
    status: ManualStatus
    created_by: Optional[str] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    effective_date: Optional[date] = None
    review_date: Optional[date] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("metadata_json", "metadata"),
    )
    created_at: datetime
    updated_at: datetime
    creator: Optional[UserSummary] = None
    approver: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class ManualListItem(ManualRead):
    top_level_sections: List[SectionBrief] = []


# ---------------------------------------------------------------------------
# SECTIONS
# ---------------------------------------------------------------------------


class SectionCreate(BaseModel):
    manual_id: str
    parent_section_id: Optional[str] = None
    section_number: str = Field(..., min_length=1, max_length=20)
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[str] = None
    order_index: int = Field(default=0, ge=0)
    section_type: SectionType = SectionType.SECTION
    is_required: bool = True
    requirements: Optional[Requirements] = None


class SectionUpdate(BaseModel):
    parent_section_id: Optional[str] = None
    section_number: Optional[str] = Field(default=None, min_length=1, max_length=20)
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = None
    order_index: Optional[int] = Field(default=None, ge=0)
    section_type: Optional[SectionType] = None
    is_required: Optional[bool] = None
    requirements: Optional[Requirements] = None
    change_reason: Optional[str] = None

    @field_validator("section_number", "title", "order_index", "section_type", "is_required")
    @classmethod
    def _required_columns(cls, value):
        return reject_null(value)


class ReorderItem(BaseModel):
    id: str
    order_index: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    sections: List[ReorderItem] = Field(..., min_length=1)


class SectionRead(BaseModel):
    id: str
    manual_id: str
    parent_section_id: Optional[str] = None
    section_number: str
    full_section_number: str
    depth: int
    title: str
    content: Optional[str] = None
    order_index: int
    section_type: SectionType
    is_required: bool
    requirements: Optional[Requirements] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SectionNode(SectionRead):
    procedures: List[ProcedureBrief] = []
    documents: List[DocumentBrief] = []
    children: List["SectionNode"] = []


class SectionDetail(SectionRead):
    manual: ManualBrief
    parent: Optional[SectionBrief] = None
    children: List[SectionNode] = []
    procedures: List[ProcedureBrief] = []
    documents: List[DocumentBrief] = []
    revisions: List[RevisionBrief] = []


class ManualDetail(ManualRead):
    sections: List[SectionNode] = Field(
        default_factory=list,
        validation_alias=AliasChoices("top_level_sections", "sections"),
    )
    documents: List[DocumentBrief] = []
    revisions: List[RevisionBrief] = []


SectionNode.model_rebuild()
