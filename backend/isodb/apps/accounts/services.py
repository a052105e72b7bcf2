# backend/isodb/apps/accounts/services.py

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from isodb import security
from isodb.errors import ConstraintViolation, DomainValidationError

from . import models, schemas

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 12


class AuthenticationError(Exception):
    """Bad email, bad password or disabled account. Callers never learn which."""


def _password_problems(password: str) -> List[dict]:
    problems = []
    if len(password or "") < MIN_PASSWORD_LENGTH:
        problems.append(
            {"field": "password", "reason": f"shorter than {MIN_PASSWORD_LENGTH} characters"}
        )
    character_classes = (
        (str.isupper, "an upper case letter"),
        (str.islower, "a lower case letter"),
        (str.isdigit, "a digit"),
    )
    for check, label in character_classes:
        if not any(check(ch) for ch in password or ""):
            problems.append({"field": "password", "reason": f"needs {label}"})
    return problems


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == email.strip().lower()).first()


def create_user(db: Session, data: schemas.UserCreate) -> models.User:
    email = data.email.strip().lower()
    if get_user_by_email(db, email) is not None:
        raise ConstraintViolation(
            "A user with this email already exists.",
            detail=[{"field": "email", "reason": "must be unique"}],
        )

    problems = _password_problems(data.password)
    if problems:
        raise DomainValidationError(
            "Password does not meet the portal policy.",
            code="weak_password",
            detail=problems,
        )

    user = models.User(
        email=email,
        full_name=data.full_name.strip(),
        position_title=(data.position_title or "").strip() or None,
        role=data.role,
        is_active=True,
        is_superuser=data.is_superuser,
        hashed_password=security.get_password_hash(data.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
    return user


def authenticate_user(db: Session, *, login_req: schemas.LoginRequest) -> models.User:
    """
    Check email and password, stamp last_login_at and return the user.

    A legacy bcrypt hash is replaced with an Argon2 one while the plain
    password is at hand.
    """
    user = get_user_by_email(db, login_req.email)
    if user is None or not user.is_active:
        logger.warning("Login rejected for unknown or inactive account")
        raise AuthenticationError("Incorrect email or password.")
    if not security.verify_password(login_req.password, user.hashed_password):
        logger.warning("Login rejected", extra={"user_id": user.id})
        raise AuthenticationError("Incorrect email or password.")

    if security.password_needs_rehash(user.hashed_password):
        user.hashed_password = security.get_password_hash(login_req.password)
        logger.info("Password hash upgraded", extra={"user_id": user.id})

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    return user


def issue_access_token_for_user(user: models.User) -> Tuple[str, int]:
    """Return (token, lifetime in seconds). Role claims are informational only."""
    token = security.create_access_token(
        user.id,
        claims={"role": user.role.value, "is_superuser": bool(user.is_superuser)},
    )
    return token, security.ACCESS_TOKEN_EXPIRE_MINUTES * 60
