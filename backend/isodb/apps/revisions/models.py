from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Index, JSON, String, Text, and_, desc
from sqlalchemy.orm import foreign, relationship

from isodb.database import Base
from isodb.utils.identifiers import generate_uuid7

DEFAULT_VERSION = "1.0"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RevisableKind(str, enum.Enum):
    MANUAL = "manual"
    SECTION = "section"
    PROCEDURE = "procedure"
    DOCUMENT = "document"


class ChangeType(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    APPROVED = "approved"
    ARCHIVED = "archived"


class Revision(Base):
    """
    Append-only change record for a manual, section, procedure or document.

    `revisionable_type` + `revisionable_id` name the owning entity; rows are
    never updated and outlive the entity they describe.
    """

    __tablename__ = "revisions"
    __table_args__ = (
        Index("ix_revisions_revisionable", "revisionable_type", "revisionable_id"),
        Index("ix_revisions_revisionable_time_desc", "revisionable_type", "revisionable_id", desc("changed_at")),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    revisionable_type = Column(String(32), nullable=False)
    revisionable_id = Column(String(36), nullable=False)
    version = Column(String(20), nullable=False, default=DEFAULT_VERSION)
    changes_summary = Column(Text, nullable=True)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    change_type = Column(
        Enum(ChangeType, name="revision_change_type_enum", native_enum=False),
        nullable=False,
        default=ChangeType.UPDATED,
    )
    changed_by = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    change_reason = Column(Text, nullable=True)
    is_major_change = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    changed_by_user = relationship("User", lazy="joined")

    @property
    def kind(self) -> RevisableKind:
        return RevisableKind(self.revisionable_type)

    def __repr__(self) -> str:
        return f"<Revision id={self.id} {self.revisionable_type}:{self.revisionable_id} {self.change_type}>"


def revision_history(kind: RevisableKind, owner_id: Callable[[], Column]):
    """
    Read-only, newest-first revision list for a revisable model.

    `owner_id` is a callable returning the owner's primary-key column so the
    join can be declared inside the owner's class body.
    """
    return relationship(
        Revision,
        primaryjoin=lambda: and_(
            Revision.revisionable_type == kind.value,
            foreign(Revision.revisionable_id) == owner_id(),
        ),
        order_by=lambda: [Revision.changed_at.desc(), Revision.id.desc()],
        viewonly=True,
    )
