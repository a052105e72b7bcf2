# backend/isodb/apps/accounts/models.py

from __future__ import annotations

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, Index, String
from sqlalchemy.orm import relationship

from isodb.database import Base
from isodb.utils.identifiers import generate_uuid7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountRole(str, enum.Enum):
    """
    Portal roles.

    - ADMIN: manages accounts and may act on any manual.
    - QUALITY_MANAGER: approves manuals, procedures and documents.
    - DOCUMENT_CONTROLLER: maintains the manual structure and records.
    - AUTHOR: drafts content.
    - VIEWER: read-only access.
    """

    ADMIN = "ADMIN"
    QUALITY_MANAGER = "QUALITY_MANAGER"
    DOCUMENT_CONTROLLER = "DOCUMENT_CONTROLLER"
    AUTHOR = "AUTHOR"
    VIEWER = "VIEWER"


class User(Base):
    """
    Portal user. Acts as manual creator, approver, procedure owner and
    the reviser recorded on every revision.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_role_active", "role", "is_active"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid7)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    position_title = Column(String(255), nullable=True)

    role = Column(
        Enum(AccountRole, name="account_role_enum", native_enum=False),
        nullable=False,
        default=AccountRole.AUTHOR,
        index=True,
    )

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    is_superuser = Column(Boolean, nullable=False, default=False)

    hashed_password = Column(String(255), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    created_manuals = relationship(
        "Manual",
        back_populates="creator",
        foreign_keys="Manual.created_by",
    )

    @property
    def can_approve(self) -> bool:
        if self.is_superuser:
            return True
        return self.role in {AccountRole.ADMIN, AccountRole.QUALITY_MANAGER}

    @property
    def can_edit(self) -> bool:
        return self.is_superuser or self.role != AccountRole.VIEWER

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
