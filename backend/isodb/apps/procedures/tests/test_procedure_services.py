from __future__ import annotations

import pytest
from pydantic import ValidationError

from isodb.apps.manuals import schemas as manual_schemas
from isodb.apps.manuals import services as manual_services
from isodb.apps.procedures import models as procedure_models
from isodb.apps.procedures import router as procedures_router
from isodb.apps.procedures import schemas as procedure_schemas
from isodb.apps.procedures import services as procedure_services
from isodb.apps.revisions.models import ChangeType, RevisableKind, Revision
from isodb.apps.workflow import TransitionError
from isodb.errors import ConstraintViolation, WorkflowViolation


def _section(db_session, user, title: str = "Quality Manual"):
    manual = manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(title=title),
        actor_user_id=user.id,
    )
    section = manual_services.create_section(
        db_session,
        manual_schemas.SectionCreate(manual_id=manual.id, section_number="4", title="Context"),
        actor_user_id=user.id,
    )
    return manual, section


def _create_procedure(db_session, user, section, code: str = "qms 001", **overrides):
    payload = {
        "section_id": section.id,
        "procedure_code": code,
        "title": "Context Analysis Procedure",
        "procedure_steps": "1. Identify issues",
    }
    payload.update(overrides)
    return procedure_services.create_procedure(
        db_session,
        procedure_schemas.ProcedureCreate(**payload),
        actor_user_id=user.id,
    )


def _procedure_revisions(db_session, procedure):
    return (
        db_session.query(Revision)
        .filter(
            Revision.revisionable_type == RevisableKind.PROCEDURE.value,
            Revision.revisionable_id == procedure.id,
        )
        .all()
    )


def test_create_normalises_code_and_defaults_owner(db_session, user):
    _, section = _section(db_session, user)

    procedure = _create_procedure(db_session, user, section)

    assert procedure.procedure_code == "QMS-001"
    assert procedure.owner_id == user.id
    assert procedure.status == procedure_models.ProcedureStatus.DRAFT
    assert procedure.version == "1.0"
    assert procedure.manual.id == section.manual_id
    assert len(_procedure_revisions(db_session, procedure)) == 1


def test_duplicate_code_is_a_conflict(db_session, user):
    _, section = _section(db_session, user)
    _create_procedure(db_session, user, section, code="QMS-001")

    with pytest.raises(ConstraintViolation) as excinfo:
        _create_procedure(db_session, user, section, code="qms-001")

    assert excinfo.value.status_code == 409
    assert excinfo.value.detail == [{"field": "procedure_code", "reason": "must be unique"}]


def test_steps_change_is_major(db_session, user):
    _, section = _section(db_session, user)
    procedure = _create_procedure(db_session, user, section)

    procedure_services.update_procedure(
        db_session,
        procedure,
        procedure_schemas.ProcedureUpdate(scope="All sites"),
        actor_user_id=user.id,
    )
    assert procedure.version == "1.0"

    procedure_services.update_procedure(
        db_session,
        procedure,
        procedure_schemas.ProcedureUpdate(procedure_steps="1. Identify issues\n2. Review annually"),
        actor_user_id=user.id,
    )
    assert procedure.version == "2.0"
    assert len(_procedure_revisions(db_session, procedure)) == 3


def test_approval_needs_owner(db_session, user, approver):
    _, section = _section(db_session, user)
    procedure = _create_procedure(db_session, user, section)
    procedure_services.update_procedure(
        db_session,
        procedure,
        procedure_schemas.ProcedureUpdate(owner_id=None),
        actor_user_id=user.id,
    )
    procedure_services.submit_procedure_for_review(db_session, procedure, actor_user_id=user.id)

    with pytest.raises(TransitionError) as excinfo:
        procedure_services.approve_procedure(db_session, procedure, actor_user_id=approver.id)

    assert excinfo.value.code == "missing_requirements"
    assert procedure.status == procedure_models.ProcedureStatus.REVIEW


def test_full_lifecycle_to_obsolete(db_session, user, approver):
    _, section = _section(db_session, user)
    procedure = _create_procedure(db_session, user, section)

    procedure_services.submit_procedure_for_review(db_session, procedure, actor_user_id=user.id)
    procedure_services.approve_procedure(db_session, procedure, actor_user_id=approver.id)
    assert procedure.status == procedure_models.ProcedureStatus.APPROVED

    with pytest.raises(WorkflowViolation):
        procedure_services.update_procedure(
            db_session,
            procedure,
            procedure_schemas.ProcedureUpdate(title="Changed after approval"),
            actor_user_id=user.id,
        )

    procedure_services.obsolete_procedure(db_session, procedure, actor_user_id=approver.id)
    assert procedure.status == procedure_models.ProcedureStatus.OBSOLETE

    change_types = sorted(revision.change_type.value for revision in _procedure_revisions(db_session, procedure))
    assert change_types == ["approved", "archived", "created", "updated"]


def test_approved_manual_blocks_new_procedures(db_session, user, approver):
    manual, section = _section(db_session, user)
    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)
    manual_services.approve_manual(db_session, manual, actor_user_id=approver.id)

    with pytest.raises(WorkflowViolation):
        _create_procedure(db_session, user, section)


def test_router_lists_by_manual_and_returns_detail(db_session, user):
    manual, section = _section(db_session, user)
    _, other_section = _section(db_session, user, title="Environmental Manual")
    procedure = _create_procedure(db_session, user, section)
    _create_procedure(db_session, user, other_section, code="EMS-001")

    page = procedures_router.list_procedures(
        section_id=None,
        manual_id=manual.id,
        status_filter=None,
        owner_id=None,
        search=None,
        page=1,
        per_page=None,
        db=db_session,
    )
    assert page["total"] == 1
    assert page["data"][0].procedure_code == "QMS-001"

    detail = procedures_router.get_procedure(procedure_id=procedure.id, db=db_session)
    assert detail.section.manual.id == manual.id
    assert detail.section.full_section_number == "4"
    assert detail.revisions[0].change_type == ChangeType.CREATED


@pytest.mark.parametrize("field", ["procedure_code", "title"])
def test_update_rejects_null_required_column(field):
    with pytest.raises(ValidationError):
        procedure_schemas.ProcedureUpdate.model_validate({field: None})
