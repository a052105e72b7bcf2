from __future__ import annotations

import pytest
from pydantic import ValidationError

from isodb.apps.manuals import models as manual_models
from isodb.apps.manuals import router as manuals_router
from isodb.apps.manuals import schemas as manual_schemas
from isodb.apps.manuals import services as manual_services
from isodb.apps.revisions.models import ChangeType, RevisableKind, Revision
from isodb.apps.workflow import TransitionError
from isodb.errors import NotFoundError, WorkflowViolation


def _create_manual(db_session, user, **overrides):
    payload = {"title": "Quality Manual", "iso_standard": "ISO 9001:2015"}
    payload.update(overrides)
    return manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(**payload),
        actor_user_id=user.id,
    )


def _add_section(db_session, user, manual, number: str, **overrides):
    payload = {"manual_id": manual.id, "section_number": number, "title": f"Section {number}"}
    payload.update(overrides)
    return manual_services.create_section(
        db_session,
        manual_schemas.SectionCreate(**payload),
        actor_user_id=user.id,
    )


def test_submit_then_resubmit_is_wrong_state(db_session, user):
    manual = _create_manual(db_session, user)

    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)
    assert manual.status == manual_models.ManualStatus.REVIEW

    with pytest.raises(TransitionError) as excinfo:
        manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)

    assert excinfo.value.code == "wrong_state"
    db_session.refresh(manual)
    assert manual.status == manual_models.ManualStatus.REVIEW


def test_approve_sets_approver_and_bumps_version(db_session, user, approver):
    manual = _create_manual(db_session, user)
    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)

    manual_services.approve_manual(db_session, manual, actor_user_id=approver.id, reason="Board sign-off")

    assert manual.status == manual_models.ManualStatus.APPROVED
    assert manual.approved_by == approver.id
    assert manual.approved_at is not None
    # submit and approve both change status, so both are major
    assert manual.version == "3.0"

    approval = db_session.query(Revision).filter(Revision.change_type == ChangeType.APPROVED).one()
    assert approval.revisionable_type == RevisableKind.MANUAL.value
    assert approval.changed_by == approver.id
    assert approval.change_reason == "Board sign-off"
    assert approval.new_data["status"] == "approved"


def test_approve_draft_fails(db_session, user, approver):
    manual = _create_manual(db_session, user)

    with pytest.raises(TransitionError):
        manual_services.approve_manual(db_session, manual, actor_user_id=approver.id)

    assert manual.status == manual_models.ManualStatus.DRAFT
    assert manual.approved_by is None


def test_archive_after_approval(db_session, user, approver):
    manual = _create_manual(db_session, user)
    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)
    manual_services.approve_manual(db_session, manual, actor_user_id=approver.id)

    manual_services.archive_manual(db_session, manual, actor_user_id=approver.id)

    assert manual.status == manual_models.ManualStatus.ARCHIVED
    assert manual.approved_by == approver.id
    archived = db_session.query(Revision).filter(Revision.change_type == ChangeType.ARCHIVED).one()
    assert archived.revisionable_id == manual.id


def test_approved_manual_is_read_only(db_session, user, approver):
    manual = _create_manual(db_session, user)
    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)
    manual_services.approve_manual(db_session, manual, actor_user_id=approver.id)

    with pytest.raises(WorkflowViolation):
        manual_services.update_manual(
            db_session,
            manual,
            manual_schemas.ManualUpdate(description="late edit"),
            actor_user_id=user.id,
        )
    with pytest.raises(WorkflowViolation):
        _add_section(db_session, user, manual, "1")


def test_delete_approved_manual_is_rejected(db_session, user, approver):
    manual = _create_manual(db_session, user)
    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)
    manual_services.approve_manual(db_session, manual, actor_user_id=approver.id)

    with pytest.raises(WorkflowViolation) as excinfo:
        manual_services.delete_manual(db_session, manual, actor_user_id=user.id)

    assert excinfo.value.code == "delete_forbidden"
    assert manual_services.get_manual(db_session, manual.id).id == manual.id


def test_delete_draft_manual_cascades_to_sections(db_session, user):
    manual = _create_manual(db_session, user)
    chapter = _add_section(db_session, user, manual, "4")
    _add_section(db_session, user, manual, "1", parent_section_id=chapter.id)
    manual_id = manual.id

    manual_services.delete_manual(db_session, manual, actor_user_id=user.id)

    with pytest.raises(NotFoundError):
        manual_services.get_manual(db_session, manual_id)
    remaining = (
        db_session.query(manual_models.ManualSection)
        .filter(manual_models.ManualSection.manual_id == manual_id)
        .count()
    )
    assert remaining == 0


def test_router_list_and_detail(db_session, user):
    _create_manual(db_session, user, title="Environmental Manual", iso_standard="ISO 14001:2015")
    manual = _create_manual(db_session, user)
    _add_section(db_session, user, manual, "1", order_index=1)

    page = manuals_router.list_manuals(
        status_filter=manual_models.ManualStatus.DRAFT,
        search="9001",
        page=1,
        per_page=None,
        db=db_session,
    )
    assert page["total"] == 1
    assert page["per_page"] == 15
    assert page["last_page"] == 1
    assert page["data"][0].id == manual.id

    detail = manuals_router.get_manual(manual_id=manual.id, db=db_session)
    assert [section.section_number for section in detail.sections] == ["1"]
    assert len(detail.revisions) == 1


def test_router_unknown_manual_is_not_found(db_session):
    with pytest.raises(NotFoundError) as excinfo:
        manuals_router.get_manual(manual_id="missing", db=db_session)

    assert excinfo.value.status_code == 404


def test_null_title_is_a_validation_error(db_session, user):
    manual = _create_manual(db_session, user)

    with pytest.raises(ValidationError) as excinfo:
        manual_schemas.ManualUpdate.model_validate({"title": None})

    assert [error["loc"] for error in excinfo.value.errors()] == [("title",)]
    db_session.refresh(manual)
    assert manual.title == "Quality Manual"


def test_nullable_fields_may_still_be_cleared(db_session, user):
    manual = _create_manual(db_session, user, description="Initial scope")

    manual_services.update_manual(
        db_session,
        manual,
        manual_schemas.ManualUpdate.model_validate({"description": None}),
        actor_user_id=user.id,
    )

    assert manual.description is None
    assert manual.title == "Quality Manual"
