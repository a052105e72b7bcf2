from __future__ import annotations

import logging

import pytest
from sqlalchemy.exc import IntegrityError

from isodb.apps.manuals import schemas as manual_schemas
from isodb.apps.manuals import services as manual_services
from isodb.apps.revisions import registry, revisable
from isodb.apps.revisions import router as revisions_router
from isodb.apps.revisions import services as revision_services
from isodb.apps.revisions.models import ChangeType, RevisableKind, Revision
from isodb.errors import NotFoundError


def _create_manual(db_session, user, title: str = "Quality Manual"):
    return manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(title=title, iso_standard="ISO 9001:2015"),
        actor_user_id=user.id,
    )


def _revisions_for(db_session, manual):
    return revision_services.list_revisions(db_session, kind=RevisableKind.MANUAL, entity_id=manual.id)


@pytest.mark.parametrize(
    "version, expected",
    [
        ("1.2", "2.0"),
        ("1.0", "2.0"),
        ("1", "2"),
        ("3.4.1", "4.0.1"),
        ("draft", "draft"),
        (None, None),
    ],
)
def test_next_version(version, expected):
    assert revisable.next_version(version) == expected


def test_summarize_changes_humanises_field_names():
    old = {"id": "a", "title": "Old", "review_date": None, "updated_at": "x"}
    new = {"id": "a", "title": "New", "review_date": "2025-01-01", "updated_at": "y"}

    assert revisable.summarize_changes(old, new) == "Title changed, Review date changed"
    assert revisable.summarize_changes(old, dict(old)) == revisable.NO_CHANGES_SUMMARY


def test_major_change_fields_only():
    base = {"title": "A", "description": "one", "status": "draft"}

    assert not revisable.is_major_change(base, {**base, "description": "two"})
    assert revisable.is_major_change(base, {**base, "title": "B"})
    assert revisable.is_major_change(base, {**base, "status": "review"})


def test_create_records_single_created_revision(db_session, user):
    manual = _create_manual(db_session, user)

    revisions = _revisions_for(db_session, manual)
    assert len(revisions) == 1
    revision = revisions[0]
    assert revision.change_type == ChangeType.CREATED
    assert revision.old_data == {}
    assert revision.new_data == revisable.snapshot(manual)
    assert revision.version == "1.0"
    assert revision.changed_by == user.id
    assert manual.version == "1.0"


def test_minor_update_keeps_version(db_session, user):
    manual = _create_manual(db_session, user)

    manual_services.update_manual(
        db_session,
        manual,
        manual_schemas.ManualUpdate(description="Scope widened"),
        actor_user_id=user.id,
    )

    revisions = _revisions_for(db_session, manual)
    assert len(revisions) == 2
    latest = db_session.query(Revision).filter(Revision.change_type == ChangeType.UPDATED).one()
    assert manual.version == "1.0"
    assert latest.is_major_change is False
    assert latest.changes_summary == "Description changed"
    assert latest.new_data == revisable.snapshot(manual)
    assert latest.old_data["description"] is None


def test_title_update_bumps_version_once(db_session, user):
    manual = _create_manual(db_session, user)

    manual_services.update_manual(
        db_session,
        manual,
        manual_schemas.ManualUpdate(title="Quality Manual (rev)", change_reason="Rename"),
        actor_user_id=user.id,
    )

    updates = db_session.query(Revision).filter(Revision.change_type == ChangeType.UPDATED).all()
    assert len(updates) == 1
    assert manual.version == "2.0"
    assert updates[0].version == "2.0"
    assert updates[0].is_major_change is True
    assert updates[0].change_reason == "Rename"
    assert updates[0].old_data["version"] == "1.0"
    assert updates[0].new_data["version"] == "2.0"


def test_revision_write_failure_keeps_business_change(db_session, user, caplog):
    manual = _create_manual(db_session, user)

    # An unknown actor breaks the revisions.changed_by foreign key only.
    with caplog.at_level(logging.WARNING, logger="isodb.apps.revisions.services"):
        manual_services.update_manual(
            db_session,
            manual,
            manual_schemas.ManualUpdate(description="Kept"),
            actor_user_id="missing-user",
        )

    assert manual.description == "Kept"
    assert len(_revisions_for(db_session, manual)) == 1
    assert "Failed to record revision" in caplog.text


def test_critical_revision_write_failure_raises(db_session, user):
    manual = _create_manual(db_session, user)
    before = revisable.snapshot(manual)
    manual.description = "Must be logged"

    with pytest.raises(IntegrityError):
        revision_services.record_change(
            db_session,
            manual,
            change_type=ChangeType.UPDATED,
            actor_user_id="missing-user",
            before=before,
            critical=True,
        )


def test_revisions_survive_manual_deletion(db_session, user):
    manual = _create_manual(db_session, user)
    manual_id = manual.id

    manual_services.delete_manual(db_session, manual, actor_user_id=user.id)

    revisions = revision_services.list_revisions(db_session, kind=RevisableKind.MANUAL, entity_id=manual_id)
    assert len(revisions) == 1
    assert registry.resolve_revisionable(db_session, revisions[0]) is None


def test_registry_resolves_subject(db_session, user):
    manual = _create_manual(db_session, user)
    revision = _revisions_for(db_session, manual)[0]

    assert revision.kind == RevisableKind.MANUAL
    assert registry.model_for(RevisableKind.MANUAL) is type(manual)
    assert registry.resolve_revisionable(db_session, revision).id == manual.id


def test_revision_router_reports_missing_subject(db_session, user):
    manual = _create_manual(db_session, user)
    revision = _revisions_for(db_session, manual)[0]

    found = revisions_router.get_revision(revision_id=revision.id, db=db_session)
    assert found.subject_exists is True
    assert found.revisionable_type == RevisableKind.MANUAL.value

    listed = revisions_router.list_revisions(entity_type=RevisableKind.MANUAL, entity_id=manual.id, db=db_session)
    assert [item.id for item in listed] == [revision.id]

    with pytest.raises(NotFoundError):
        revisions_router.get_revision(revision_id="missing", db=db_session)
