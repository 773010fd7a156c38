"""Pull request payouts.

A pull request is classified from its labels, merged on GitHub, and its
reward is added to the competition counters and the author's earnings.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable
from uuid import UUID
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.errors import ExternalServiceError
from app.models.competition import Competition
from app.models.user import User, to_money
from app.services.competitions import get_competition, get_user_by_username
from app.services.github import GitHubClient, repo_path_from_url

log = structlog.get_logger()

# First match wins when a PR carries several of these
LABEL_PRECEDENCE = ("feature", "bug", "optimization", "security")

# Competition counter bumped per classification (security has none)
_COUNTER_FOR = {
    "feature": "features",
    "bug": "bugs",
    "optimization": "optimisations",
    "security": None,
}


@dataclass(frozen=True)
class PullRequestPayout:
    classification: str | None
    reward: Decimal
    counters: dict[str, int] = field(default_factory=dict)


def classify_labels(labels: Iterable[str]) -> str | None:
    names = {str(name).lower() for name in labels}
    for kind in LABEL_PRECEDENCE:
        if kind in names:
            return kind
    return None


def compute_payout(ch: Competition, labels: Iterable[str]) -> PullRequestPayout:
    kind = classify_labels(labels)
    if kind is None:
        return PullRequestPayout(classification=None, reward=Decimal("0"))
    reward = to_money(getattr(ch, f"reward_{kind}"))
    counter = _COUNTER_FOR[kind]
    return PullRequestPayout(classification=kind, reward=reward, counters={counter: 1} if counter else {})


async def apply_payout(session: AsyncSession, competition_id: UUID, user_id: UUID, payout: PullRequestPayout) -> None:
    """Atomic in-database increments; concurrent payouts never overwrite each other."""
    values = {"total_earnings": Competition.total_earnings + payout.reward}
    for column, n in payout.counters.items():
        values[column] = getattr(Competition, column) + n
    await session.execute(update(Competition).where(Competition.id == competition_id).values(**values))
    await session.execute(
        update(User).where(User.id == user_id).values(total_earnings=User.total_earnings + payout.reward)
    )


async def reconcile_pull_request(
    session: AsyncSession,
    github: GitHubClient,
    competition_id: UUID,
    pr_number: int,
) -> PullRequestPayout:
    ch = await get_competition(session, competition_id)
    repo = repo_path_from_url(ch.repository_link)

    pr = await github.get_pull_request(repo, pr_number)
    login = (pr.get("user") or {}).get("login")
    if not login:
        raise ExternalServiceError(f"Pull request {repo}#{pr_number} has no author")
    user = await get_user_by_username(session, login)

    labels = [label.get("name", "") for label in pr.get("labels") or []]
    payout = compute_payout(ch, labels)
    log.info("pr_classified", competition_id=str(ch.id), repo=repo, pr=pr_number,
             author=login, labels=labels, classification=payout.classification, reward=str(payout.reward))

    # Merged regardless of classification
    await github.merge_pull_request(repo, pr_number)
    log.info("pr_merged", competition_id=str(ch.id), repo=repo, pr=pr_number)

    if payout.classification is None:
        return payout

    # rollback expires ORM instances, so the failure log must not touch them
    ch_id, user_id, username = ch.id, user.id, user.username
    try:
        await apply_payout(session, ch_id, user_id, payout)
        await session.commit()
    except Exception:
        # merged on GitHub but not credited here; needs manual reconciliation
        log.error("reconcile_persist_failed", competition_id=str(ch_id), repo=repo, pr=pr_number,
                  username=username, reward=str(payout.reward), exc_info=True)
        await session.rollback()
        raise
    log.info("pr_reward_credited", competition_id=str(ch_id), username=username, reward=str(payout.reward))
    return payout
