"""User profile router (API endpoints)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database.dependencies import get_db_session
from src.features.auth.dependencies import get_current_user_id

from .exceptions import UserNotFound
from .schemas import UserResponse, UserUpdateRequest
from .service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Get the authenticated user's profile."""
    user = await UserService.get_user(session, user_id)
    if not user:
        raise UserNotFound()
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_current_user(
    data: UserUpdateRequest,
    user_id: UUID = Depends(get_current_user_id),
    session: AsyncSession = Depends(get_db_session),
):
    """Update the authenticated user's "about me" text (max 500 characters)."""
    user = await UserService.get_user(session, user_id)
    if not user:
        raise UserNotFound()

    user = await UserService.update_about(session, user, data.about)
    await session.commit()
    return UserResponse.model_validate(user)
