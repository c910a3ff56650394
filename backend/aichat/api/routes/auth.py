"""
auth.py — Session-cookie authentication.

POST /api/register     – create a local account and log in
POST /api/login        – username + password
POST /api/logout       – clear the session
GET  /api/auth/replit  – identity-provider login

IDENTITY PROVIDER:
  When the app is deployed behind Replit's auth proxy, the proxy injects
  X-Replit-User-Id and X-Replit-User-Name on every request from a signed-in
  visitor.  The user is looked up by username (created on first visit, with
  the provider's user id as the password) and logged into our own session.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from aichat.core.database import get_db
from aichat.models.tables import USERNAME_MAX_LENGTH, User
from aichat.services.auth import hash_password, login_user, logout_user, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


class RegisterRequest(BaseModel):
    username: str = Field(min_length=3, max_length=USERNAME_MAX_LENGTH)
    password: str = Field(min_length=6, max_length=128)


class LoginRequest(BaseModel):
    username: str
    password: str


async def _find_user(db: AsyncSession, username: str) -> User | None:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    username = body.username.strip()
    if len(username) < 3:
        raise HTTPException(status_code=400, detail="Username must be at least 3 characters")

    if await _find_user(db, username) is not None:
        raise HTTPException(status_code=409, detail="Username already taken")

    user = User(username=username, password_hash=hash_password(body.password))
    db.add(user)
    await db.flush()

    login_user(request, user)
    logger.info("Registered user %s", username)
    return user.to_dict()


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    user = await _find_user(db, body.username.strip())
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid username or password")

    login_user(request, user)
    return user.to_dict()


@router.post("/logout")
async def logout(request: Request):
    logout_user(request)
    return {"message": "Logged out"}


@router.get("/auth/replit")
async def replit_login(
    request: Request,
    db: AsyncSession = Depends(get_db),
    x_replit_user_id: str | None = Header(default=None),
    x_replit_user_name: str | None = Header(default=None),
):
    if not x_replit_user_id or not x_replit_user_name:
        raise HTTPException(status_code=401, detail="Not authenticated with Replit")
    if len(x_replit_user_name) > USERNAME_MAX_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Username must be at most {USERNAME_MAX_LENGTH} characters",
        )

    user = await _find_user(db, x_replit_user_name)
    if user is None:
        user = User(
            username=x_replit_user_name,
            password_hash=hash_password(x_replit_user_id),
        )
        db.add(user)
        await db.flush()
        logger.info("Created user %s from identity provider", x_replit_user_name)

    login_user(request, user)
    return user.to_dict()
