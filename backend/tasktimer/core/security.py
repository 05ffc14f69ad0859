"""Password hashing and bearer token handling."""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tasktimer.core.settings import get_settings
from tasktimer.engine.entities import generate_id
from tasktimer.models.user import User

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
# bcrypt only reads the first 72 bytes of a password
BCRYPT_MAX_BYTES = 72


class AuthError(Exception):
    """Registration or login was refused."""


def hash_password(password: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash for storage."""
    rounds = rounds or get_settings().bcrypt_rounds
    return bcrypt.hashpw(password.encode()[:BCRYPT_MAX_BYTES], bcrypt.gensalt(rounds)).decode()


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode()[:BCRYPT_MAX_BYTES], stored.encode())
    except ValueError:
        # not a bcrypt hash
        return False


def issue_token(user_id: str) -> str:
    """Sign a JWT carrying ``userId`` that expires after the configured TTL."""
    settings = get_settings()
    expires = datetime.now(timezone.utc) + timedelta(days=settings.token_ttl_days)
    return jwt.encode(
        {"userId": user_id, "exp": expires}, settings.jwt_secret, algorithm=JWT_ALGORITHM
    )


def decode_token(token: str) -> str | None:
    """Return the token's user id, or None if it is malformed, forged or expired."""
    try:
        payload = jwt.decode(token, get_settings().jwt_secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        return None
    except jwt.InvalidTokenError:
        return None
    return payload.get("userId")


def register_user(db: Session, username: str, password: str) -> tuple[User, str]:
    """Create an account and return it with a fresh token."""
    user = User(id=generate_id(), username=username, password_hash=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AuthError("Username already exists")

    logger.info(f"Registered user {user.id}")
    return user, issue_token(user.id)


def login_user(db: Session, username: str, password: str) -> tuple[User, str]:
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthError("Invalid credentials")
    return user, issue_token(user.id)


def authenticate_token(db: Session, token: str) -> User | None:
    """Return the token's user, or None if the token is invalid or the user is gone."""
    user_id = decode_token(token)
    if user_id is None:
        return None
    return db.get(User, user_id)
