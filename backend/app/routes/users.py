from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.db import get_session
from app.schemas.user import UserDetail
from app.services.competitions import get_user_by_username

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/{username}", response_model=UserDetail)
async def get_user(username: str, session: AsyncSession = Depends(get_session)):
    user = await get_user_by_username(session, username)
    return UserDetail.model_validate(user)
