# backend/isodb/apps/accounts/router.py

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from isodb.database import get_db
from isodb.security import get_current_active_user, require_admin

from . import models, schemas, services

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=schemas.Token, summary="Exchange email and password for a bearer token")
def login(payload: schemas.LoginRequest, db: Session = Depends(get_db)):
    try:
        user = services.authenticate_user(db, login_req=payload)
    except services.AuthenticationError as exc:
        raise HTTPException(
            status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

    access_token, lifetime = services.issue_access_token_for_user(user)
    return schemas.Token(
        access_token=access_token,
        expires_in=lifetime,
        user=schemas.UserRead.model_validate(user),
    )


@router.get("/me", response_model=schemas.UserRead, summary="The authenticated user")
def me(current_user: models.User = Depends(get_current_active_user)):
    return current_user


@router.post(
    "/users",
    response_model=schemas.UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register a portal user (administrators)",
)
def create_user(
    payload: schemas.UserCreate,
    db: Session = Depends(get_db),
    current_user: models.User = Depends(require_admin),
):
    if payload.is_superuser and not current_user.is_superuser:
        raise HTTPException(status.HTTP_403_FORBIDDEN, detail="Only a superuser may create another superuser")
    return services.create_user(db, payload)
