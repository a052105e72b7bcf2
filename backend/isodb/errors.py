"""
Domain errors and their HTTP translation.

Services raise these; `register_exception_handlers` turns them into
`{"error": code, "message": text, "detail": [{"field", "reason"}]}` bodies.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError


logger = logging.getLogger(__name__)

Detail = List[Dict[str, str]]


class DomainError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "domain_error"

    def __init__(self, message: str, *, code: Optional[str] = None, detail: Optional[Detail] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.detail: Detail = detail or []

    def to_body(self) -> dict:
        return {"error": self.code, "message": self.message, "detail": self.detail}


class NotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, entity: str, entity_id: object):
        super().__init__(
            f"{entity} not found",
            detail=[{"field": "id", "reason": f"{entity} {entity_id} does not exist"}],
        )
        self.entity = entity
        self.entity_id = entity_id


class WorkflowViolation(DomainError):
    """The entity's status forbids the requested edit or delete."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "not_editable"


class DomainValidationError(DomainError):
    # Starlette has renamed its 422 constant; the number is stable.
    status_code = 422
    code = "validation_failed"


# Postgres: Key (procedure_code)=(SOP-001) already exists.
_PG_KEY_RE = re.compile(r"Key \(([^)]+)\)=")
# SQLite: UNIQUE constraint failed: procedures.procedure_code
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: ([\w., ]+)")


def _constraint_fields(exc: IntegrityError) -> List[str]:
    message = str(getattr(exc, "orig", exc))
    match = _PG_KEY_RE.search(message)
    if match:
        return [part.strip() for part in match.group(1).split(",")]
    match = _SQLITE_UNIQUE_RE.search(message)
    if match:
        return [part.strip().split(".")[-1] for part in match.group(1).split(",")]
    return []


class ConstraintViolation(DomainError):
    status_code = status.HTTP_409_CONFLICT
    code = "constraint_violation"

    @classmethod
    def from_integrity_error(cls, exc: IntegrityError) -> "ConstraintViolation":
        fields = _constraint_fields(exc)
        detail = [{"field": field, "reason": "must be unique"} for field in fields]
        if not detail:
            detail = [{"field": "record", "reason": "violates a database constraint"}]
        return cls("Record conflicts with existing data", detail=detail)


# ---------------------------------------------------------------------------
# HANDLERS
# ---------------------------------------------------------------------------


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "code": exc.code, "status_code": exc.status_code},
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def transition_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": exc.code, "message": "Status transition not allowed", "detail": exc.detail},
    )


def register_exception_handlers(app: FastAPI) -> None:
    from isodb.apps.workflow import TransitionError

    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(TransitionError, transition_error_handler)


def commit_or_conflict(db) -> None:
    """Commit the session; unique/FK failures roll back and become ConstraintViolation."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConstraintViolation.from_integrity_error(exc) from exc
