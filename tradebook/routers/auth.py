"""
Auth endpoints — register, login, refresh, logout, me.

Every other endpoint needs the access token from here as a bearer header.
"""

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import models
from ..auth import (
    REFRESH,
    create_access_token,
    decode_token,
    find_refresh_token,
    get_current_user,
    hash_password,
    issue_tokens,
    verify_password,
)
from ..database import get_db

router = APIRouter(prefix="/auth", tags=["auth"])


class Credentials(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    id: int
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("/register")
def register(request: Credentials, db: Session = Depends(get_db)):
    """Create an account and sign it in."""
    email = request.email.strip().lower()
    if db.query(models.User).filter(models.User.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Account with this email already exists",
        )

    user = models.User(email=email, password_hash=hash_password(request.password))
    db.add(user)
    db.commit()
    db.refresh(user)
    return issue_tokens(db, user)


@router.post("/login")
def login(request: Credentials, db: Session = Depends(get_db)):
    user = db.query(models.User).filter(
        models.User.email == request.email.strip().lower()
    ).first()
    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return issue_tokens(db, user)


@router.post("/refresh")
def refresh(request: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a stored, unexpired refresh token for a new access token."""
    user_id = decode_token(request.refresh_token, REFRESH)

    stored = find_refresh_token(db, request.refresh_token)
    if not stored:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token not found — it may have been revoked",
        )
    if stored.expires_at < datetime.utcnow():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token expired",
        )

    return {
        "access_token": create_access_token(user_id),
        "token_type": "bearer",
        "user_id": user_id,
    }


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: RefreshRequest,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Revoke a refresh token. Access tokens simply expire."""
    stored = find_refresh_token(db, request.refresh_token)
    if stored and stored.user_id == current_user.id:
        db.delete(stored)
        db.commit()


@router.get("/me", response_model=UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
