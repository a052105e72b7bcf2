"""
Create users, manuals, sections, procedures, documents and revisions.

Revision ID: a3f1c9d2e7b4
Revises:
Create Date: 2025-09-02
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a3f1c9d2e7b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("position_title", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            sa.Enum(
                "ADMIN",
                "QUALITY_MANAGER",
                "DOCUMENT_CONTROLLER",
                "AUTHOR",
                "VIEWER",
                name="account_role_enum",
                native_enum=False,
            ),
            nullable=False,
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_superuser", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])
    op.create_index("ix_users_is_active", "users", ["is_active"])
    op.create_index("idx_users_role_active", "users", ["role", "is_active"])

    op.create_table(
        "iso_manuals",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("iso_standard", sa.String(length=100), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("version", sa.String(length=20), nullable=False, server_default="1.0"),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "REVIEW", "APPROVED", "ARCHIVED", name="manual_status_enum", native_enum=False),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("created_by", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("approved_by", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("effective_date", sa.Date(), nullable=True),
        sa.Column("review_date", sa.Date(), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_iso_manuals_iso_standard", "iso_manuals", ["iso_standard"])
    op.create_index("ix_iso_manuals_status", "iso_manuals", ["status"])
    op.create_index("ix_iso_manuals_created_by", "iso_manuals", ["created_by"])
    op.create_index("ix_iso_manuals_review_date", "iso_manuals", ["review_date"])

    op.create_table(
        "manual_sections",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("manual_id", sa.String(length=36), sa.ForeignKey("iso_manuals.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "parent_section_id",
            sa.String(length=36),
            sa.ForeignKey("manual_sections.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("section_number", sa.String(length=20), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("order_index", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "section_type",
            sa.Enum("CHAPTER", "SECTION", "SUBSECTION", "APPENDIX", name="section_type_enum", native_enum=False),
            nullable=False,
            server_default="SECTION",
        ),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("requirements", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("manual_id", "section_number", name="uq_manual_sections_manual_number"),
    )
    op.create_index("ix_manual_sections_manual_id", "manual_sections", ["manual_id"])
    op.create_index("ix_manual_sections_parent_section_id", "manual_sections", ["parent_section_id"])

    op.create_table(
        "procedures",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("section_id", sa.String(length=36), sa.ForeignKey("manual_sections.id", ondelete="CASCADE"), nullable=False),
        sa.Column("procedure_code", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=True),
        sa.Column("scope", sa.Text(), nullable=True),
        sa.Column("procedure_steps", sa.Text(), nullable=True),
        sa.Column("responsibilities", sa.Text(), nullable=True),
        sa.Column("references", sa.Text(), nullable=True),
        sa.Column("records", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "REVIEW", "APPROVED", "OBSOLETE", name="procedure_status_enum", native_enum=False),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("version", sa.String(length=20), nullable=False, server_default="1.0"),
        sa.Column("owner_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("review_date", sa.Date(), nullable=True),
        sa.Column("effective_date", sa.Date(), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_procedures_section_id", "procedures", ["section_id"])
    op.create_index("ix_procedures_procedure_code", "procedures", ["procedure_code"], unique=True)
    op.create_index("ix_procedures_status", "procedures", ["status"])
    op.create_index("ix_procedures_owner_id", "procedures", ["owner_id"])

    op.create_table(
        "documents",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("manual_id", sa.String(length=36), sa.ForeignKey("iso_manuals.id", ondelete="CASCADE"), nullable=False),
        sa.Column("section_id", sa.String(length=36), sa.ForeignKey("manual_sections.id", ondelete="SET NULL"), nullable=True),
        sa.Column("procedure_id", sa.String(length=36), sa.ForeignKey("procedures.id", ondelete="SET NULL"), nullable=True),
        sa.Column("document_code", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "document_type",
            sa.Enum(
                "FORM",
                "TEMPLATE",
                "CHECKLIST",
                "RECORD",
                "POLICY",
                "INSTRUCTION",
                "OTHER",
                name="document_type_enum",
                native_enum=False,
            ),
            nullable=False,
            server_default="OTHER",
        ),
        sa.Column("file_path", sa.String(length=500), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("file_type", sa.String(length=10), nullable=True),
        sa.Column("file_size", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.String(length=20), nullable=False, server_default="1.0"),
        sa.Column(
            "status",
            sa.Enum("DRAFT", "REVIEW", "APPROVED", "OBSOLETE", name="document_status_enum", native_enum=False),
            nullable=False,
            server_default="DRAFT",
        ),
        sa.Column("created_by", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("approved_by", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("review_date", sa.Date(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_documents_manual_id", "documents", ["manual_id"])
    op.create_index("ix_documents_section_id", "documents", ["section_id"])
    op.create_index("ix_documents_procedure_id", "documents", ["procedure_id"])
    op.create_index("ix_documents_document_code", "documents", ["document_code"], unique=True)
    op.create_index("ix_documents_document_type", "documents", ["document_type"])
    op.create_index("ix_documents_status", "documents", ["status"])
    op.create_index("ix_documents_created_by", "documents", ["created_by"])

    op.create_table(
        "revisions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("revisionable_type", sa.String(length=32), nullable=False),
        sa.Column("revisionable_id", sa.String(length=36), nullable=False),
        sa.Column("version", sa.String(length=20), nullable=False, server_default="1.0"),
        sa.Column("changes_summary", sa.Text(), nullable=True),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column(
            "change_type",
            sa.Enum("CREATED", "UPDATED", "APPROVED", "ARCHIVED", name="revision_change_type_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("changed_by", sa.String(length=36), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("change_reason", sa.Text(), nullable=True),
        sa.Column("is_major_change", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_revisions_revisionable", "revisions", ["revisionable_type", "revisionable_id"])
    op.create_index(
        "ix_revisions_revisionable_time_desc",
        "revisions",
        ["revisionable_type", "revisionable_id", sa.text("changed_at DESC")],
    )
    op.create_index("ix_revisions_changed_by", "revisions", ["changed_by"])


def downgrade() -> None:
    op.drop_table("revisions")
    op.drop_table("documents")
    op.drop_table("procedures")
    op.drop_table("manual_sections")
    op.drop_table("iso_manuals")
    op.drop_table("users")
