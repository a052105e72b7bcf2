from __future__ import annotations

from datetime import datetime, timezone

import pytest

from isodb.apps.manuals.models import ManualStatus
from isodb.apps.workflow import TransitionError, check_transition, ensure_editable, is_editable
from isodb.apps.workflow.guards import requires
from isodb.errors import WorkflowViolation


@pytest.mark.parametrize(
    "status, editable",
    [
        ("draft", True),
        ("review", True),
        ("approved", False),
        ("archived", False),
        ("obsolete", False),
        (ManualStatus.DRAFT, True),
        (ManualStatus.APPROVED, False),
    ],
)
def test_is_editable(status, editable):
    assert is_editable(status) is editable


def test_ensure_editable_rejects_approved():
    with pytest.raises(WorkflowViolation) as excinfo:
        ensure_editable(ManualStatus.APPROVED, entity_type="manual", entity_id="m-1")

    assert excinfo.value.status_code == 403
    assert excinfo.value.code == "not_editable"
    assert excinfo.value.detail[0]["field"] == "status"


def test_submit_from_draft_allowed():
    check_transition("manual", "draft", "review", {}, entity_id="m-1")


def test_skipping_review_is_wrong_state():
    proposed = {"approved_by": "u-1", "approved_at": datetime.now(timezone.utc)}

    with pytest.raises(TransitionError) as excinfo:
        check_transition("manual", ManualStatus.DRAFT, ManualStatus.APPROVED, proposed)

    assert excinfo.value.code == "wrong_state"


def test_approval_guard_reports_missing_fields():
    with pytest.raises(TransitionError) as excinfo:
        check_transition("document", "review", "approved", {"approved_by": None, "approved_at": None})

    assert excinfo.value.code == "missing_requirements"
    assert {item["field"] for item in excinfo.value.detail} == {"approved_by", "approved_at"}


def test_procedure_approval_requires_owner():
    with pytest.raises(TransitionError) as excinfo:
        check_transition("procedure", "review", "approved", {"owner_id": None})

    assert excinfo.value.detail == [{"field": "owner_id", "reason": "procedure owner required"}]


def test_manuals_archive_but_procedures_go_obsolete():
    check_transition("manual", "approved", "archived", {})

    with pytest.raises(TransitionError):
        check_transition("procedure", "approved", "archived", {})


def test_terminal_states_have_no_exits():
    with pytest.raises(TransitionError) as excinfo:
        check_transition("document", "obsolete", "draft", {})

    assert excinfo.value.code == "wrong_state"


def test_unknown_entity_type():
    with pytest.raises(TransitionError) as excinfo:
        check_transition("section", "draft", "review", {})

    assert excinfo.value.code == "invalid_transition"


def test_requires_only_flags_empty_fields():
    guard = requires(owner_id="owner missing", reviewer_id="reviewer missing")

    assert guard({"owner_id": "u-1", "reviewer_id": ""}) == [
        {"field": "reviewer_id", "reason": "reviewer missing"}
    ]
