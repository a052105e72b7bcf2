"""
Authentication for the manual portal.

Passwords are stored as Argon2id hashes. Accounts migrated from the
previous document system still carry bcrypt hashes; those verify as
before and are re-hashed with Argon2 on the next successful login.

Access tokens are HS256 JWTs whose `sub` claim is the user id. Routers
resolve the caller through `get_current_active_user` or one of the role
gates at the bottom of this module.
"""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Mapping, Optional

import bcrypt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHash, VerificationError
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from isodb.apps.accounts.models import AccountRole, User
from isodb.database import get_db


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = _int_setting("ACCESS_TOKEN_EXPIRE_MINUTES", 60)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")

_hasher = PasswordHasher(
    time_cost=_int_setting("ARGON2_TIME_COST", 3),
    memory_cost=_int_setting("ARGON2_MEMORY_COST", 64 * 1024),
    parallelism=_int_setting("ARGON2_PARALLELISM", 2),
)

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------


def get_password_hash(password: str) -> str:
    return _hasher.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a password against an Argon2 or legacy bcrypt hash."""
    if not plain_password or not hashed_password:
        return False

    if hashed_password.startswith("$argon2"):
        try:
            return _hasher.verify(hashed_password, plain_password)
        except (VerificationError, InvalidHash):
            return False

    if hashed_password.startswith(_BCRYPT_PREFIXES):
        try:
            return bcrypt.checkpw(plain_password.encode(), hashed_password.encode())
        except ValueError:
            return False

    return False


def password_needs_rehash(hashed_password: str) -> bool:
    """True for bcrypt hashes and for Argon2 hashes made with older cost settings."""
    if hashed_password.startswith(_BCRYPT_PREFIXES):
        return True
    try:
        return _hasher.check_needs_rehash(hashed_password)
    except InvalidHash:
        return True


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def create_access_token(
    subject: str,
    *,
    claims: Optional[Mapping[str, Any]] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    issued_at = datetime.now(timezone.utc)
    body: Dict[str, Any] = dict(claims or {})
    body.update(sub=str(subject), iat=issued_at, exp=issued_at + lifetime)
    return jwt.encode(body, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict[str, Any]:
    return jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])


# ---------------------------------------------------------------------------
# Request dependencies
# ---------------------------------------------------------------------------


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    try:
        subject = decode_access_token(token).get("sub")
    except JWTError:
        subject = None

    user = db.get(User, str(subject)) if subject else None
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user account",
        )
    return current_user


def _role_gate(allowed: Callable[[User], bool], detail: str) -> Callable[..., User]:
    def dependency(current_user: User = Depends(get_current_active_user)) -> User:
        if not allowed(current_user):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
        return current_user

    return dependency


# Any role except VIEWER edits; approval needs ADMIN, QUALITY_MANAGER or superuser.
require_editor = _role_gate(lambda u: u.can_edit, "Viewers cannot change manual content")
require_approver = _role_gate(lambda u: u.can_approve, "Only quality managers may approve")
require_admin = _role_gate(
    lambda u: u.is_superuser or u.role == AccountRole.ADMIN,
    "Administrator access required",
)
