from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import List

from sqlalchemy import Boolean, Column, Date, DateTime, Enum, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from isodb.apps.revisions.models import DEFAULT_VERSION, RevisableKind, revision_history
from isodb.database import Base
from isodb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ManualStatus(str, enum.Enum):
    DRAFT = "draft"
    REVIEW = "review"
    APPROVED = "approved"
    ARCHIVED = "archived"


class SectionType(str, enum.Enum):
    CHAPTER = "chapter"
    SECTION = "section"
    SUBSECTION = "subsection"
    APPENDIX = "appendix"


class Manual(Base):
    """
    Top-level compliance manual (e.g. a QMS manual for ISO 9001:2015).

    `approved_by` / `approved_at` are only ever set by the approve action
    and are kept when the manual is later archived.
    """

    __tablename__ = "iso_manuals"
    __revisable_kind__ = RevisableKind.MANUAL

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    title = Column(String(255), nullable=False)
    iso_standard = Column(String(100), nullable=True, index=True)
    description = Column(Text, nullable=True)
    version = Column(String(20), nullable=False, default=DEFAULT_VERSION)
    status = Column(
        Enum(ManualStatus, name="manual_status_enum", native_enum=False),
        nullable=False,
        default=ManualStatus.DRAFT,
        index=True,
    )
    created_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    approved_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    effective_date = Column(Date, nullable=True)
    review_date = Column(Date, nullable=True, index=True)
    metadata_json = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    creator = relationship("User", foreign_keys=[created_by], back_populates="created_manuals")
    approver = relationship("User", foreign_keys=[approved_by])

    sections = relationship(
        "ManualSection",
        back_populates="manual",
        cascade="all, delete-orphan",
        order_by="ManualSection.order_index",
    )
    documents = relationship(
        "Document",
        back_populates="manual",
        cascade="all, delete-orphan",
    )
    revisions = revision_history(RevisableKind.MANUAL, lambda: Manual.id)

    @property
    def top_level_sections(self) -> List["ManualSection"]:
        return [section for section in self.sections if section.parent_section_id is None]

    @property
    def is_approved(self) -> bool:
        return self.status == ManualStatus.APPROVED

    def __repr__(self) -> str:
        return f"<Manual id={self.id} {self.title!r} v{self.version} {self.status}>"


class ManualSection(Base):
    __tablename__ = "manual_sections"
    __table_args__ = (
        UniqueConstraint("manual_id", "section_number", name="uq_manual_sections_manual_number"),
    )
    __revisable_kind__ = RevisableKind.SECTION

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    manual_id = Column(String(36), ForeignKey("iso_manuals.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_section_id = Column(String(36), ForeignKey("manual_sections.id", ondelete="CASCADE"), nullable=True, index=True)
    section_number = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    section_type = Column(
        Enum(SectionType, name="section_type_enum", native_enum=False),
        nullable=False,
        default=SectionType.SECTION,
    )
    is_required = Column(Boolean, nullable=False, default=True)
    requirements = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    manual = relationship("Manual", back_populates="sections")
    parent = relationship("ManualSection", remote_side=[id], back_populates="children")
    children = relationship(
        "ManualSection",
        back_populates="parent",
        cascade="all",
        order_by="ManualSection.order_index",
    )
    procedures = relationship(
        "Procedure",
        back_populates="section",
        cascade="all, delete-orphan",
    )
    documents = relationship("Document", back_populates="section")
    revisions = revision_history(RevisableKind.SECTION, lambda: ManualSection.id)

    def ancestors(self) -> List["ManualSection"]:
        """Parent chain, nearest first. Stops if a cycle is found."""
        chain: List[ManualSection] = []
        seen = {self.id}
        node = self.parent
        while node is not None and node.id not in seen:
            chain.append(node)
            seen.add(node.id)
            node = node.parent
        return chain

    @property
    def full_section_number(self) -> str:
        numbers = [ancestor.section_number for ancestor in reversed(self.ancestors())]
        numbers.append(self.section_number)
        return ".".join(numbers)

    @property
    def depth(self) -> int:
        return len(self.ancestors())

    def __repr__(self) -> str:
        return f"<ManualSection id={self.id} {self.section_number} {self.title!r}>"
