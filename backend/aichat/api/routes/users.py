"""
users.py — GET /api/user  and  PATCH /api/user/profile

The profile fields are what services/prompt.py turns into the
"About the user you are talking to" block of the system prompt.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from aichat.api.deps import get_current_user
from aichat.core.database import get_db
from aichat.models.tables import User

router = APIRouter(prefix="/api/user", tags=["user"])


class ProfileUpdateRequest(BaseModel):
    """
    Body for PATCH /api/user/profile.  Every field is optional; only the
    fields present in the request are changed (null clears a field).
    """
    model_config = ConfigDict(populate_by_name=True)

    full_name:      str | None       = Field(default=None, alias="fullName", max_length=255)
    location:       str | None       = Field(default=None, max_length=255)
    interests:      list[str] | None = None
    profession:     str | None       = Field(default=None, max_length=255)
    pets:           str | None       = None
    system_context: str | None       = Field(default=None, alias="systemContext")


@router.get("")
async def get_user(user: User = Depends(get_current_user)):
    return user.to_dict()


@router.patch("/profile")
async def update_profile(
    body: ProfileUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    changes = body.model_dump(exclude_unset=True)
    if "interests" in changes:
        changes["interests"] = [i.strip() for i in changes["interests"] or [] if i.strip()]

    for field, value in changes.items():
        setattr(user, field, value)
    await db.flush()

    return user.to_dict()
