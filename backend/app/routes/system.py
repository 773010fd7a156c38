from __future__ import annotations
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import datetime, timezone
from app.config import settings
from app.db import get_session

router = APIRouter(tags=["system"])

@router.get("/health")
async def health(request: Request, session: AsyncSession = Depends(get_session)):
    await session.execute(text("SELECT 1"))
    return {
        "status": "ok",
        "db": "ok",
        "env": settings.environment,
        "time": datetime.now(timezone.utc).isoformat(),
        "request_id": request.headers.get("x-request-id") or request.state.request_id,
    }

@router.get("/version")
async def version():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "git_sha": settings.git_sha,
    }
