from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship

from isodb.apps.revisions.models import DEFAULT_VERSION, RevisableKind, revision_history
from isodb.database import Base
from isodb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProcedureStatus(str, enum.Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    OBSOLETE = "obsolete"


class Procedure(Base):
    """
    Documented operational process (e.g. "QMS-001 Control of documented
    information") attached to one manual section.
    """

    __tablename__ = "procedures"
    __revisable_kind__ = RevisableKind.PROCEDURE

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    section_id = Column(String(36), ForeignKey("manual_sections.id", ondelete="CASCADE"), nullable=False, index=True)
    procedure_code = Column(String(50), nullable=False, unique=True, index=True)
    title = Column(String(255), nullable=False)
    purpose = Column(Text, nullable=True)
    scope = Column(Text, nullable=True)
    procedure_steps = Column(Text, nullable=True)
    responsibilities = Column(Text, nullable=True)
    references = Column(Text, nullable=True)
    records = Column(Text, nullable=True)
    status = Column(
        Enum(ProcedureStatus, name="procedure_status_enum", native_enum=False),
        nullable=False,
        default=ProcedureStatus.DRAFT,
        index=True,
    )
    version = Column(String(20), nullable=False, default=DEFAULT_VERSION)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    review_date = Column(Date, nullable=True)
    effective_date = Column(Date, nullable=True)
    attachments = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    section = relationship("ManualSection", back_populates="procedures")
    owner = relationship("User", foreign_keys=[owner_id])
    documents = relationship("Document", back_populates="procedure")
    revisions = revision_history(RevisableKind.PROCEDURE, lambda: Procedure.id)

    @property
    def manual(self):
        return self.section.manual if self.section is not None else None

    def __repr__(self) -> str:
        return f"<Procedure {self.procedure_code} v{self.version} {self.status}>"
