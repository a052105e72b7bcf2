from __future__ import annotations

from datetime import date, timedelta

from isodb.apps.dashboard import router as dashboard_router
from isodb.apps.dashboard import services as dashboard_services
from isodb.apps.manuals import schemas as manual_schemas
from isodb.apps.manuals import services as manual_services


def _approved_manual(db_session, user, approver, *, title: str, review_date: date):
    manual = manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(title=title, review_date=review_date),
        actor_user_id=user.id,
    )
    manual_services.submit_manual_for_review(db_session, manual, actor_user_id=user.id)
    manual_services.approve_manual(db_session, manual, actor_user_id=approver.id)
    return manual


def test_stats_count_by_status(db_session, user, approver):
    today = date(2025, 6, 1)
    draft = manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(title="Draft Manual"),
        actor_user_id=user.id,
    )
    manual_services.create_section(
        db_session,
        manual_schemas.SectionCreate(manual_id=draft.id, section_number="1", title="Scope"),
        actor_user_id=user.id,
    )
    in_review = manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(title="Review Manual"),
        actor_user_id=user.id,
    )
    manual_services.submit_manual_for_review(db_session, in_review, actor_user_id=user.id)
    _approved_manual(db_session, user, approver, title="Approved Manual", review_date=today + timedelta(days=400))

    stats = dashboard_services.manual_stats(db_session)

    assert stats == {
        "total_manuals": 3,
        "approved_manuals": 1,
        "draft_manuals": 1,
        "review_manuals": 1,
        "total_sections": 1,
        "total_procedures": 0,
        "total_documents": 0,
    }


def test_upcoming_reviews_include_overdue_within_horizon(db_session, user, approver):
    today = date(2025, 6, 1)
    overdue = _approved_manual(db_session, user, approver, title="Overdue", review_date=today - timedelta(days=3))
    soon = _approved_manual(db_session, user, approver, title="Soon", review_date=today + timedelta(days=30))
    _approved_manual(db_session, user, approver, title="Later", review_date=today + timedelta(days=31))
    manual_services.create_manual(
        db_session,
        manual_schemas.ManualCreate(title="Draft due", review_date=today),
        actor_user_id=user.id,
    )

    upcoming = dashboard_services.upcoming_reviews(db_session, today=today)

    assert [manual.id for manual in upcoming] == [overdue.id, soon.id]


def test_router_shape(db_session, user):
    for index in range(7):
        manual_services.create_manual(
            db_session,
            manual_schemas.ManualCreate(title=f"Manual {index}"),
            actor_user_id=user.id,
        )

    result = dashboard_router.read_dashboard(db=db_session)

    assert result.stats.total_manuals == 7
    assert len(result.recent_manuals) == dashboard_services.RECENT_LIMIT
    assert result.upcoming_reviews == []
