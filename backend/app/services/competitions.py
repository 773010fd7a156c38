from __future__ import annotations
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.orm import raiseload
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.errors import CompetitionNotFound, UserNotFound
from app.models.competition import Competition, CompetitionSubmission
from app.models.user import User

log = structlog.get_logger()


async def get_competition(session: AsyncSession, competition_id: UUID, *, for_update: bool = False) -> Competition:
    q = select(Competition).where(Competition.id == competition_id)
    if for_update:
        # serializes judge-panel edits on the same competition
        q = q.with_for_update()
    ch = await session.scalar(q)
    if not ch:
        raise CompetitionNotFound()
    return ch


async def get_user_by_username(session: AsyncSession, username: str) -> User:
    user = await session.scalar(select(User).where(User.username == username))
    if not user:
        raise UserNotFound()
    return user


async def list_competitions(session: AsyncSession, *, page: int, limit: int) -> tuple[list[Competition], int]:
    """One page of competitions (oldest first) and the overall count."""
    total = await session.scalar(select(func.count()).select_from(Competition))
    rows = (await session.execute(
        select(Competition)
        .options(raiseload(Competition.lead_judge), raiseload(Competition.judge_links), raiseload(Competition.submissions))
        .order_by(Competition.created_at.asc(), Competition.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
    )).scalars().all()
    return list(rows), int(total or 0)


async def update_status(session: AsyncSession, competition_id: UUID, status: str) -> Competition:
    ch = await get_competition(session, competition_id)
    previous = ch.status
    ch.status = status
    await session.commit()
    log.info("competition_status_changed", competition_id=str(ch.id), previous=previous, status=status)
    return ch


async def add_submission(
    session: AsyncSession,
    competition_id: UUID,
    *,
    username: str,
    submission_type: str,
    code_link: str | None,
) -> CompetitionSubmission:
    ch = await get_competition(session, competition_id)
    user = await get_user_by_username(session, username)
    sub = CompetitionSubmission(user_id=user.id, user=user, submission_type=submission_type, code_link=code_link)
    ch.submissions.append(sub)
    await session.commit()
    log.info("submission_recorded", competition_id=str(ch.id), username=user.username, submission_type=submission_type)
    return sub
