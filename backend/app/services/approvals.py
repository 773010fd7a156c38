from __future__ import annotations
from decimal import Decimal
from uuid import UUID
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.models.competition import Competition
from app.models.user import User, ApprovedSubmission, to_money
from app.services.competitions import get_competition, get_user_by_username

log = structlog.get_logger()

_DISTRIBUTION_FOR = {
    "Feature": "reward_distribution_feature",
    "Optimization": "reward_distribution_optimization",
    "Bug": "reward_distribution_bugs",
}


def approval_payout(ch: Competition, submission_type: str) -> Decimal:
    """reward * distribution% / 100; unknown submission types pay nothing."""
    column = _DISTRIBUTION_FOR.get(submission_type)
    if column is None:
        return Decimal("0")
    reward = Decimal(ch.reward or 0)
    pct = Decimal(getattr(ch, column) or 0)
    return to_money(reward * pct / Decimal(100))


async def approve_submission(
    session: AsyncSession,
    competition_id: UUID,
    username: str,
    submission_type: str,
) -> Decimal:
    ch = await get_competition(session, competition_id)
    user = await get_user_by_username(session, username)
    payout = approval_payout(ch, submission_type)

    session.add(ApprovedSubmission(
        user_id=user.id,
        competition_id=ch.id,
        submission_type=submission_type,
        payout=payout,
    ))
    await session.execute(
        update(User).where(User.id == user.id).values(total_earnings=User.total_earnings + payout)
    )
    await session.commit()
    log.info("submission_approved", competition_id=str(ch.id), username=user.username,
             submission_type=submission_type, payout=str(payout))
    return payout
