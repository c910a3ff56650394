"""
deps.py — Shared FastAPI dependencies for resolving the logged-in user.

get_optional_user – User or None; for routes that work anonymously but
                    personalise when logged in (/api/chat, /api/conversations)
get_current_user  – User or 401 "Not authenticated"
"""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from aichat.core.database import get_db
from aichat.models.tables import User
from aichat.services.auth import session_user_id


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    user_id = session_user_id(request)
    if user_id is None:
        return None
    return await db.get(User, user_id)


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    user_id = session_user_id(request)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    user = await db.get(User, user_id)
    if user is None:
        # Session points at a deleted account
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
