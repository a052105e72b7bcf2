from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import BigInteger, Column, Date, DateTime, Enum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship

from isodb.apps.revisions.models import DEFAULT_VERSION, RevisableKind, revision_history
from isodb.database import Base
from isodb.utils.identifiers import generate_uuid7

_SIZE_UNITS = ("B", "KB", "MB", "GB")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentType(str, enum.Enum):
    FORM = "form"
    TEMPLATE = "template"
    CHECKLIST = "checklist"
    RECORD = "record"
    POLICY = "policy"
    INSTRUCTION = "instruction"
    OTHER = "other"


class DocumentStatus(str, enum.Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    OBSOLETE = "obsolete"


def human_file_size(size: Optional[int]) -> str:
    """
    >>> human_file_size(1536)
    '1.5 KB'
    >>> human_file_size(None)
    'Unknown'
    """
    if not size:
        return "Unknown"
    value = float(size)
    unit = 0
    while value > 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


class Document(Base):
    """
    Supporting record, form or template filed under a manual.

    Only file metadata is stored; the bytes live with the file-storage
    provider at `file_path`.
    """

    __tablename__ = "documents"
    __revisable_kind__ = RevisableKind.DOCUMENT

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    manual_id = Column(String(36), ForeignKey("iso_manuals.id", ondelete="CASCADE"), nullable=False, index=True)
    section_id = Column(String(36), ForeignKey("manual_sections.id", ondelete="SET NULL"), nullable=True, index=True)
    procedure_id = Column(String(36), ForeignKey("procedures.id", ondelete="SET NULL"), nullable=True, index=True)
    document_code = Column(String(50), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    document_type = Column(
        Enum(DocumentType, name="document_type_enum", native_enum=False),
        nullable=False,
        default=DocumentType.OTHER,
        index=True,
    )
    file_path = Column(String(500), nullable=True)
    file_name = Column(String(255), nullable=True)
    file_type = Column(String(10), nullable=True)
    file_size = Column(BigInteger, nullable=True)
    version = Column(String(20), nullable=False, default=DEFAULT_VERSION)
    status = Column(
        Enum(DocumentStatus, name="document_status_enum", native_enum=False),
        nullable=False,
        default=DocumentStatus.DRAFT,
        index=True,
    )
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    review_date = Column(Date, nullable=True)
    tags = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    manual = relationship("Manual", back_populates="documents")
    section = relationship("ManualSection", back_populates="documents")
    procedure = relationship("Procedure", back_populates="documents")
    creator = relationship("User", foreign_keys=[created_by])
    approver = relationship("User", foreign_keys=[approved_by])
    revisions = revision_history(RevisableKind.DOCUMENT, lambda: Document.id)

    @property
    def file_size_human(self) -> str:
        return human_file_size(self.file_size)

    def __repr__(self) -> str:
        return f"<Document {self.document_code} v{self.version} {self.status}>"
