"""Registration and login endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from tasktimer.core.security import AuthError, login_user, register_user
from tasktimer.db.base import get_db
from tasktimer.schemas.auth import AuthResponse, Credentials

router = APIRouter()
logger = logging.getLogger(__name__)


def _require_fields(credentials: Credentials) -> None:
    if not credentials.username or not credentials.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username and password required",
        )


@router.post("/register", response_model=AuthResponse)
def register(credentials: Credentials, db: Session = Depends(get_db)) -> AuthResponse:
    """Create an account and return a bearer token."""
    _require_fields(credentials)
    try:
        user, token = register_user(db, credentials.username, credentials.password)
    except AuthError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return AuthResponse(token=token, user_id=user.id)


@router.post("/login", response_model=AuthResponse)
def login(credentials: Credentials, db: Session = Depends(get_db)) -> AuthResponse:
    """Exchange username and password for a bearer token."""
    _require_fields(credentials)
    try:
        user, token = login_user(db, credentials.username, credentials.password)
    except AuthError as exc:
        logger.info(f"Failed login for {credentials.username!r}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    return AuthResponse(token=token, user_id=user.id)
