from __future__ import annotations

import asyncio
import json

import pytest
from sqlalchemy.exc import IntegrityError
from starlette.requests import Request

from isodb import errors
from isodb.apps.workflow import TransitionError
from isodb.main import app


def _make_request(path: str = "/manuals/1") -> Request:
    return Request(
        {
            "type": "http",
            "method": "PUT",
            "path": path,
            "headers": [(b"user-agent", b"pytest")],
            "query_string": b"",
            "client": ("127.0.0.1", 1234),
            "server": ("testserver", 80),
            "scheme": "http",
        }
    )


def _body(response) -> dict:
    return json.loads(response.body)


@pytest.mark.parametrize(
    "exc, status_code, code",
    [
        (errors.NotFoundError("Manual", "m-1"), 404, "not_found"),
        (errors.WorkflowViolation("Manual cannot be modified while approved"), 403, "not_editable"),
        (errors.DomainValidationError("bad parent", code="invalid_parent"), 422, "invalid_parent"),
        (errors.ConstraintViolation("duplicate"), 409, "constraint_violation"),
    ],
)
def test_domain_errors_map_to_status(exc, status_code, code):
    response = asyncio.run(errors.domain_error_handler(_make_request(), exc))

    assert response.status_code == status_code
    body = _body(response)
    assert body["error"] == code
    assert body["message"] == exc.message
    assert isinstance(body["detail"], list)


def test_not_found_detail_names_entity():
    body = errors.NotFoundError("Procedure", "p-9").to_body()

    assert body["message"] == "Procedure not found"
    assert body["detail"] == [{"field": "id", "reason": "Procedure p-9 does not exist"}]


def test_transition_error_is_bad_request():
    exc = TransitionError(code="wrong_state", detail=[{"field": "status", "reason": "Cannot transition"}])

    response = asyncio.run(errors.transition_error_handler(_make_request(), exc))

    assert response.status_code == 400
    assert _body(response) == {
        "error": "wrong_state",
        "message": "Status transition not allowed",
        "detail": [{"field": "status", "reason": "Cannot transition"}],
    }


@pytest.mark.parametrize(
    "message, fields",
    [
        ("UNIQUE constraint failed: procedures.procedure_code", ["procedure_code"]),
        (
            "UNIQUE constraint failed: manual_sections.manual_id, manual_sections.section_number",
            ["manual_id", "section_number"],
        ),
        ('duplicate key value violates unique constraint "ix_documents_document_code"\n'
         "DETAIL:  Key (document_code)=(DOC-001) already exists.", ["document_code"]),
    ],
)
def test_integrity_error_field_attribution(message, fields):
    exc = IntegrityError("INSERT ...", {}, Exception(message))

    violation = errors.ConstraintViolation.from_integrity_error(exc)

    assert [item["field"] for item in violation.detail] == fields


def test_unparsed_integrity_error_falls_back_to_record():
    exc = IntegrityError("INSERT ...", {}, Exception("FOREIGN KEY constraint failed"))

    violation = errors.ConstraintViolation.from_integrity_error(exc)

    assert violation.detail == [{"field": "record", "reason": "violates a database constraint"}]


def test_app_registers_handlers_and_routes():
    assert errors.DomainError in app.exception_handlers
    assert TransitionError in app.exception_handlers

    paths = app.openapi()["paths"]
    for path in (
        "/auth/login",
        "/manuals",
        "/manuals/{manual_id}/tree",
        "/manuals/{manual_id}/approve",
        "/sections/reorder",
        "/procedures/{procedure_id}/obsolete",
        "/documents/{document_id}/submit-for-review",
        "/revisions/{revision_id}",
        "/search/global",
        "/dashboard",
    ):
        assert path in paths
