from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["SECRET_KEY"] = "test-secret-key"

import isodb  # noqa: E402,F401  (registers every model on Base.metadata)
from isodb.database import Base  # noqa: E402
from isodb.apps.accounts import models as account_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


def _create_user(db_session, *, email: str, full_name: str, role: account_models.AccountRole):
    user = account_models.User(
        email=email,
        full_name=full_name,
        hashed_password="hash",
        role=role,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture()
def user(db_session):
    return _create_user(
        db_session,
        email="author@example.com",
        full_name="Alex Author",
        role=account_models.AccountRole.AUTHOR,
    )


@pytest.fixture()
def approver(db_session):
    return _create_user(
        db_session,
        email="quality@example.com",
        full_name="Quinn Quality",
        role=account_models.AccountRole.QUALITY_MANAGER,
    )
