"""Judge panel management.

The lead judge is always the panel member with the highest xp; among equal
xp the earliest-assigned judge wins. It is recomputed on every panel change.
"""
from __future__ import annotations
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.errors import DuplicateAssignment, ExternalServiceError
from app.models.competition import Competition, CompetitionJudge
from app.models.user import User
from app.services.competitions import get_competition, get_user_by_username
from app.services.github import GitHubClient

log = structlog.get_logger()


def is_on_panel(ch: Competition, user: User) -> bool:
    if ch.lead_judge_id is not None and ch.lead_judge_id == user.id:
        return True
    return any(link.user_id == user.id for link in ch.judge_links)


async def recompute_lead_judge(session: AsyncSession, ch: Competition) -> User | None:
    """Set ch.lead_judge to the top judge by xp. An empty panel leaves it untouched."""
    top = await session.scalar(
        select(User)
        .join(CompetitionJudge, CompetitionJudge.user_id == User.id)
        .where(CompetitionJudge.competition_id == ch.id)
        .order_by(User.xp.desc(), CompetitionJudge.position.asc())
        .limit(1)
    )
    if top is None:
        return ch.lead_judge
    if ch.lead_judge_id != top.id:
        log.info("lead_judge_recomputed", competition_id=str(ch.id), previous=str(ch.lead_judge_id), lead_judge=top.username)
    ch.lead_judge = top
    return top


async def assign_judge(session: AsyncSession, competition_id: UUID, username: str) -> Competition:
    ch = await get_competition(session, competition_id, for_update=True)
    user = await get_user_by_username(session, username)
    if is_on_panel(ch, user):
        raise DuplicateAssignment()

    position = max((link.position for link in ch.judge_links), default=-1) + 1
    ch.judge_links.append(CompetitionJudge(user_id=user.id, user=user, position=position))
    await session.flush()
    await recompute_lead_judge(session, ch)
    await session.commit()
    log.info("judge_assigned", competition_id=str(ch.id), username=user.username, panel_size=len(ch.judge_links))
    return ch


async def refresh_lead_judge(session: AsyncSession, competition_id: UUID, username: str) -> Competition:
    """Re-run lead selection without touching the panel (non-'judge' role updates)."""
    ch = await get_competition(session, competition_id, for_update=True)
    await get_user_by_username(session, username)
    await recompute_lead_judge(session, ch)
    await session.commit()
    return ch


async def make_judge(session: AsyncSession, github: GitHubClient, competition_id: UUID, username: str) -> Competition:
    """
    Assign the judge, then grant GitHub judge-team membership.
    The assignment is committed first and stays in place if the grant fails.
    """
    ch = await assign_judge(session, competition_id, username)
    try:
        await github.add_team_membership(username)
    except ExternalServiceError as e:
        # needs a manual grant; the panel row is already committed
        log.error("judge_team_grant_failed", competition_id=str(ch.id), username=username, team=github.judge_team, error=e.message)
        raise ExternalServiceError(
            f"Judge assigned but GitHub team membership failed: {e.message}",
            upstream_status=e.upstream_status,
        ) from e
    log.info("judge_team_granted", competition_id=str(ch.id), username=username, team=github.judge_team)
    return ch
