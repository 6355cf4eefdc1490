"""
Identity: password hashing, JWT access/refresh tokens, current user lookup.

Access tokens are stateless and short-lived. Refresh tokens are stored as
SHA-256 hashes so they can be revoked on logout.

Libraries: python-jose[cryptography] for JWT, passlib[bcrypt] for passwords.
"""

import hashlib
import uuid
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import get_db

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
bearer = HTTPBearer(auto_error=False)

ACCESS = "access"
REFRESH = "refresh"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _secret() -> str:
    if not settings.JWT_SECRET:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWT_SECRET not configured — set it in environment variables",
        )
    return settings.JWT_SECRET


def _encode(user_id: int, token_type: str, lifetime: timedelta) -> str:
    payload = {
        "sub": str(user_id),
        "exp": datetime.utcnow() + lifetime,
        "type": token_type,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _secret(), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user_id: int) -> str:
    return _encode(user_id, ACCESS, timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES))


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def decode_token(token: str, expected_type: str) -> int:
    """Validate `token` and return its user id. Raises 401 on any problem."""
    try:
        payload = jwt.decode(token, _secret(), algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise _unauthorized("Invalid or expired token")

    if payload.get("type") != expected_type:
        raise _unauthorized(f"Invalid token type — expected {expected_type} token")
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise _unauthorized("Invalid token payload")


def issue_tokens(db: Session, user: models.User) -> dict:
    """New access + refresh token pair; the refresh token hash is stored."""
    lifetime = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)
    refresh_token = _encode(user.id, REFRESH, lifetime)
    db.add(models.AuthToken(
        user_id=user.id,
        token_hash=hash_token(refresh_token),
        token_type=REFRESH,
        expires_at=datetime.utcnow() + lifetime,
    ))
    db.commit()
    return {
        "access_token": create_access_token(user.id),
        "refresh_token": refresh_token,
        "token_type": "bearer",
        "user_id": user.id,
    }


def find_refresh_token(db: Session, token: str):
    return db.query(models.AuthToken).filter(
        models.AuthToken.token_hash == hash_token(token),
        models.AuthToken.token_type == REFRESH,
    ).first()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> models.User:
    """FastAPI dependency — the user behind the bearer access token."""
    if credentials is None:
        raise _unauthorized("Authentication required")

    user_id = decode_token(credentials.credentials, ACCESS)
    user = db.query(models.User).filter(models.User.id == user_id).first()
    if not user:
        raise _unauthorized("User not found")
    return user
