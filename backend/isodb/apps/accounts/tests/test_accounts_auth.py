from __future__ import annotations

import bcrypt
import pytest
from fastapi import HTTPException

from isodb import security
from isodb.apps.accounts import models as account_models
from isodb.apps.accounts import router as accounts_router
from isodb.apps.accounts import schemas as account_schemas
from isodb.apps.accounts import services as account_services
from isodb.errors import ConstraintViolation, DomainValidationError

STRONG_PASSWORD = "Manual-Control-2025"


def _register(db_session, email: str = "Controller@Example.com", **overrides):
    payload = {
        "email": email,
        "full_name": "Dana Controller",
        "role": account_models.AccountRole.DOCUMENT_CONTROLLER,
        "password": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return account_services.create_user(db_session, account_schemas.UserCreate(**payload))


def test_password_hash_round_trip():
    hashed = security.get_password_hash(STRONG_PASSWORD)

    assert hashed.startswith("$argon2")
    assert security.verify_password(STRONG_PASSWORD, hashed)
    assert not security.verify_password("wrong-password", hashed)
    assert not security.verify_password(STRONG_PASSWORD, "hash")


def test_legacy_bcrypt_hash_still_verifies():
    legacy = bcrypt.hashpw(STRONG_PASSWORD.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")

    assert security.verify_password(STRONG_PASSWORD, legacy)


def test_create_user_normalises_email_and_rejects_duplicates(db_session):
    user = _register(db_session)

    assert user.email == "controller@example.com"
    assert user.can_edit and not user.can_approve

    with pytest.raises(ConstraintViolation):
        _register(db_session, email="controller@example.com")


@pytest.mark.parametrize("password", ["short1A", "alllowercase-no-digits"])
def test_weak_passwords_rejected(db_session, password):
    with pytest.raises(DomainValidationError) as excinfo:
        _register(db_session, password=password)

    assert excinfo.value.code == "weak_password"


def test_login_issues_token_for_subject(db_session):
    user = _register(db_session)

    token = accounts_router.login(
        payload=account_schemas.LoginRequest(email="controller@example.com", password=STRONG_PASSWORD),
        db=db_session,
    )

    claims = security.decode_access_token(token.access_token)
    assert claims["sub"] == user.id
    assert claims["role"] == "DOCUMENT_CONTROLLER"
    assert token.expires_in == security.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    assert token.user.last_login_at is not None


def test_login_rejects_bad_password(db_session):
    _register(db_session)

    with pytest.raises(HTTPException) as excinfo:
        accounts_router.login(
            payload=account_schemas.LoginRequest(email="controller@example.com", password="Not-The-Password-1"),
            db=db_session,
        )

    assert excinfo.value.status_code == 401


def test_role_dependencies(user, approver):
    viewer = account_models.User(
        email="viewer@example.com",
        full_name="Val Viewer",
        hashed_password="hash",
        role=account_models.AccountRole.VIEWER,
        is_active=True,
        is_superuser=False,
    )

    assert security.require_editor(current_user=user) is user
    assert security.require_approver(current_user=approver) is approver
    with pytest.raises(HTTPException):
        security.require_editor(current_user=viewer)
    with pytest.raises(HTTPException):
        security.require_approver(current_user=user)
    with pytest.raises(HTTPException):
        security.require_admin(current_user=approver)


def test_current_user_from_token(db_session, user):
    token = security.create_access_token(user.id)

    assert security.get_current_user(token=token, db=db_session).id == user.id
    with pytest.raises(HTTPException):
        security.get_current_user(token="not-a-jwt", db=db_session)


def test_only_superuser_creates_superuser(db_session):
    admin = _register(db_session, email="admin@example.com", role=account_models.AccountRole.ADMIN)

    with pytest.raises(HTTPException) as excinfo:
        accounts_router.create_user(
            payload=account_schemas.UserCreate(
                email="root@example.com",
                full_name="Root",
                password=STRONG_PASSWORD,
                is_superuser=True,
            ),
            db=db_session,
            current_user=admin,
        )

    assert excinfo.value.status_code == 403


def test_login_upgrades_legacy_bcrypt_hash(db_session):
    user = _register(db_session)
    user.hashed_password = bcrypt.hashpw(STRONG_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode()
    db_session.commit()

    authenticated = account_services.authenticate_user(
        db_session,
        login_req=account_schemas.LoginRequest(email=user.email, password=STRONG_PASSWORD),
    )

    assert authenticated.hashed_password.startswith("$argon2")
    assert not security.password_needs_rehash(authenticated.hashed_password)
