from __future__ import annotations

import logging
import os
from datetime import date, timedelta
from typing import List, Tuple

from sqlalchemy.orm import Session

from isodb.database import WriteSessionLocal
from isodb.apps.accounts import models as account_models
from isodb.apps.accounts import schemas as account_schemas
from isodb.apps.accounts import services as account_services
from isodb.apps.documents import models as document_models
from isodb.apps.documents import schemas as document_schemas
from isodb.apps.documents import services as document_services
from isodb.apps.manuals import models as manual_models
from isodb.apps.manuals import schemas as manual_schemas
from isodb.apps.manuals import services as manual_services
from isodb.apps.procedures import schemas as procedure_schemas
from isodb.apps.procedures import services as procedure_services

logger = logging.getLogger(__name__)

ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "ChangeMe-Admin-2025")

QMS_TITLE = "Quality Management System Manual"
EMS_TITLE = "Environmental Management System Manual"

QMS_CHAPTERS: List[Tuple[str, str]] = [
    ("1", "Scope"),
    ("2", "Normative References"),
    ("3", "Terms and Definitions"),
    ("4", "Context of the Organization"),
    ("5", "Leadership"),
    ("6", "Planning"),
    ("7", "Support"),
    ("8", "Operation"),
    ("9", "Performance Evaluation"),
    ("10", "Improvement"),
]

CONTEXT_SUBSECTIONS: List[Tuple[str, str]] = [
    ("4.1", "Understanding the Organization and its Context"),
    ("4.2", "Understanding the Needs and Expectations of Interested Parties"),
    ("4.3", "Determining the Scope of the Quality Management System"),
    ("4.4", "Quality Management System and its Processes"),
]

CHAPTER_CONTENT = {
    "1": "This manual applies to the Quality Management System of the organization and covers all "
    "activities related to the design, development, production and servicing of its products and services.",
    "4": "The organization determines external and internal issues that are relevant to its purpose and "
    "strategic direction and that affect its ability to achieve the intended results of its QMS.",
    "5": "Top management demonstrates leadership and commitment with respect to the quality management system.",
    "6": "The organization plans actions to address risks and opportunities and sets quality objectives.",
    "7": "The organization determines and provides the resources needed for the quality management system.",
    "8": "The organization plans, implements and controls the processes needed to provide products and services.",
    "9": "The organization determines what needs to be monitored and measured, and how results are evaluated.",
    "10": "The organization selects opportunities for improvement and implements the necessary actions.",
}

CONTEXT_REQUIREMENTS = {
    "context_analysis": "Documented analysis of organizational context",
    "stakeholder_analysis": "Identification of interested parties and their requirements",
    "scope_definition": "Clear definition of QMS scope",
    "process_interaction": "Documentation of process interactions",
}


def _get_or_create_admin(db: Session) -> account_models.User:
    user = account_services.get_user_by_email(db, ADMIN_EMAIL)
    if user:
        return user
    return account_services.create_user(
        db,
        account_schemas.UserCreate(
            email=ADMIN_EMAIL,
            full_name="ISO Administrator",
            position_title="Quality Manager",
            role=account_models.AccountRole.ADMIN,
            password=ADMIN_PASSWORD,
            is_superuser=True,
        ),
    )


def _find_manual(db: Session, title: str) -> manual_models.Manual | None:
    return db.query(manual_models.Manual).filter(manual_models.Manual.title == title).first()


def _seed_qms_manual(db: Session, admin: account_models.User) -> manual_models.Manual:
    existing = _find_manual(db, QMS_TITLE)
    if existing:
        return existing

    today = date.today()
    manual = manual_services.create_manual(
        db,
        manual_schemas.ManualCreate(
            title=QMS_TITLE,
            iso_standard="ISO 9001:2015",
            description=(
                "Describes the Quality Management System implemented to meet the requirements of "
                "ISO 9001:2015, with the policies, procedures and processes that support it."
            ),
            version="2.1",
            effective_date=today - timedelta(days=30),
            review_date=today + timedelta(days=365),
            metadata={"certification_body": "ISO Certification Authority"},
        ),
        actor_user_id=admin.id,
    )

    context_section = None
    for order_index, (number, title) in enumerate(QMS_CHAPTERS, start=1):
        section = manual_services.create_section(
            db,
            manual_schemas.SectionCreate(
                manual_id=manual.id,
                section_number=number,
                title=title,
                content=CHAPTER_CONTENT.get(number, "Content for this section will be developed."),
                order_index=order_index,
                section_type=manual_models.SectionType.CHAPTER,
                requirements=CONTEXT_REQUIREMENTS if number == "4" else None,
            ),
            actor_user_id=admin.id,
        )
        if number == "4":
            context_section = section

    for order_index, (number, title) in enumerate(CONTEXT_SUBSECTIONS, start=1):
        manual_services.create_section(
            db,
            manual_schemas.SectionCreate(
                manual_id=manual.id,
                parent_section_id=context_section.id,
                section_number=number,
                title=title,
                content="This subsection addresses specific requirements and implementation guidelines.",
                order_index=order_index,
                section_type=manual_models.SectionType.SUBSECTION,
            ),
            actor_user_id=admin.id,
        )

    procedure = procedure_services.create_procedure(
        db,
        procedure_schemas.ProcedureCreate(
            section_id=context_section.id,
            procedure_code="QMS-001",
            title="Context Analysis Procedure",
            purpose="Establish a systematic approach for understanding the organization and its context.",
            scope="Applies to all organizational units and processes.",
            procedure_steps=(
                "1. Identify internal and external issues\n"
                "2. Analyze stakeholder requirements\n"
                "3. Document context analysis\n"
                "4. Review and update annually"
            ),
            responsibilities="Quality Manager: overall responsibility\nDepartment Heads: provide input",
            version="1.2",
            effective_date=today - timedelta(days=60),
            review_date=today + timedelta(days=180),
        ),
        actor_user_id=admin.id,
    )
    document = document_services.create_document(
        db,
        document_schemas.DocumentCreate(
            manual_id=manual.id,
            section_id=context_section.id,
            procedure_id=procedure.id,
            document_code="DOC-001",
            title="Context Analysis Template",
            description="Template for documenting organizational context analysis.",
            document_type=document_models.DocumentType.TEMPLATE,
            tags=["context", "analysis", "template"],
        ),
        actor_user_id=admin.id,
    )

    procedure_services.submit_procedure_for_review(db, procedure, actor_user_id=admin.id)
    procedure_services.approve_procedure(db, procedure, actor_user_id=admin.id)
    document_services.submit_document_for_review(db, document, actor_user_id=admin.id)
    document_services.approve_document(db, document, actor_user_id=admin.id)
    manual_services.submit_manual_for_review(db, manual, actor_user_id=admin.id)
    manual_services.approve_manual(db, manual, actor_user_id=admin.id, reason="Initial release")
    return manual


def _seed_ems_manual(db: Session, admin: account_models.User) -> manual_models.Manual:
    existing = _find_manual(db, EMS_TITLE)
    if existing:
        return existing
    today = date.today()
    return manual_services.create_manual(
        db,
        manual_schemas.ManualCreate(
            title=EMS_TITLE,
            iso_standard="ISO 14001:2015",
            description="Framework for the Environmental Management System under ISO 14001:2015.",
            effective_date=today + timedelta(days=30),
            review_date=today + timedelta(days=365),
        ),
        actor_user_id=admin.id,
    )


def seed_demo(db: Session) -> manual_models.Manual:
    """Create the demo admin and manuals; safe to run more than once."""
    admin = _get_or_create_admin(db)
    manual = _seed_qms_manual(db, admin)
    _seed_ems_manual(db, admin)
    logger.info("Demo data seeded", extra={"manual_id": manual.id, "admin_id": admin.id})
    return manual


def main() -> None:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    db = WriteSessionLocal()
    try:
        seed_demo(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
