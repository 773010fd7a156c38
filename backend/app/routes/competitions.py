from __future__ import annotations
from math import ceil
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from app.db import get_session
from app.deps import get_github_client
from app.models.competition import Competition, CompetitionSubmission
from app.schemas.competition import (
    ApprovePRRequest, ApprovePRResponse, ApproveSubmissionRequest, ApproveSubmissionResponse,
    CompetitionDetail, CompetitionEnvelope, CompetitionPage, CompetitionSummary, JudgePanel,
    JudgeUpdate, MakeJudgeRequest, PageMeta, RewardBreakdown, RewardDistribution, StatusUpdate,
    SubmissionCreate, SubmissionPublic,
)
from app.schemas.user import UserPublic
from app.services import competitions as registry
from app.services.approvals import approve_submission as approve_submission_svc
from app.services.github import GitHubClient
from app.services.judges import assign_judge, make_judge as make_judge_svc, refresh_lead_judge
from app.services.reconciliation import reconcile_pull_request

router = APIRouter(prefix="/competitions", tags=["competitions"])


def to_summary(ch: Competition) -> CompetitionSummary:
    return CompetitionSummary(
        id=ch.id, name=ch.name, description=ch.description, status=ch.status,
        reward=ch.reward, points=ch.points, image=ch.image,
        languages=ch.languages or [], types=ch.types or [],
        start_date=ch.start_date, end_date=ch.end_date,
    )


def to_submission(s: CompetitionSubmission) -> SubmissionPublic:
    return SubmissionPublic(
        id=s.id, user_id=s.user_id, username=s.user.username,
        submission_type=s.submission_type, code_link=s.code_link,
        timestamp=s.timestamp, approved=s.approved, payout=s.payout,
    )


def to_detail(ch: Competition) -> CompetitionDetail:
    return CompetitionDetail(
        **to_summary(ch).model_dump(),
        rewards=RewardBreakdown(
            feature=ch.reward_feature, bug=ch.reward_bug,
            optimization=ch.reward_optimization, security=ch.reward_security,
        ),
        reward_distribution=RewardDistribution(
            feature=ch.reward_distribution_feature,
            optimization=ch.reward_distribution_optimization,
            bugs=ch.reward_distribution_bugs,
        ),
        website_link=ch.website_link, repository_link=ch.repository_link,
        competition_details=ch.competition_details, how_to_guide=ch.how_to_guide, scope=ch.scope,
        total_earnings=ch.total_earnings, features=ch.features, bugs=ch.bugs, optimisations=ch.optimisations,
        judges=JudgePanel(
            lead_judge=UserPublic.model_validate(ch.lead_judge) if ch.lead_judge else None,
            judges=[UserPublic.model_validate(u) for u in ch.judges],
        ),
        submissions=[to_submission(s) for s in ch.submissions],
    )


@router.get("", response_model=CompetitionPage)
async def list_competitions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    session: AsyncSession = Depends(get_session),
):
    rows, total = await registry.list_competitions(session, page=page, limit=limit)
    return CompetitionPage(
        message="OK" if rows else "No competitions",
        meta_data=PageMeta(total_records=total, total_pages=ceil(total / limit), current_page=page, limit=limit),
        result=[to_summary(c) for c in rows],
    )


@router.get("/{competition_id}", response_model=CompetitionEnvelope)
async def get_competition(competition_id: UUID, session: AsyncSession = Depends(get_session)):
    ch = await registry.get_competition(session, competition_id)
    return CompetitionEnvelope(message="OK", competition=to_detail(ch))


@router.put("/{competition_id}/judges", response_model=CompetitionDetail)
async def update_judges(competition_id: UUID, payload: JudgeUpdate, session: AsyncSession = Depends(get_session)):
    if payload.type == "judge":
        ch = await assign_judge(session, competition_id, payload.username)
    else:
        ch = await refresh_lead_judge(session, competition_id, payload.username)
    return to_detail(ch)


@router.post("/{competition_id}/make-judge", response_model=CompetitionDetail)
async def make_judge(
    competition_id: UUID,
    payload: MakeJudgeRequest,
    session: AsyncSession = Depends(get_session),
    github: GitHubClient = Depends(get_github_client),
):
    ch = await make_judge_svc(session, github, competition_id, payload.username)
    return to_detail(ch)


@router.post("/{competition_id}/approve-pr", response_model=ApprovePRResponse)
async def approve_pr(
    competition_id: UUID,
    payload: ApprovePRRequest,
    session: AsyncSession = Depends(get_session),
    github: GitHubClient = Depends(get_github_client),
):
    result = await reconcile_pull_request(session, github, competition_id, payload.pr_number)
    return ApprovePRResponse(
        message="PR merged and user earnings updated",
        payout=result.reward,
        classification=result.classification,
    )


@router.put("/{competition_id}/status", response_model=CompetitionDetail)
async def update_status(competition_id: UUID, payload: StatusUpdate, session: AsyncSession = Depends(get_session)):
    ch = await registry.update_status(session, competition_id, payload.status)
    return to_detail(ch)


@router.post("/{competition_id}/approve-submission", response_model=ApproveSubmissionResponse)
async def approve_submission(
    competition_id: UUID,
    payload: ApproveSubmissionRequest,
    session: AsyncSession = Depends(get_session),
):
    payout = await approve_submission_svc(session, competition_id, payload.username, payload.submission_type)
    return ApproveSubmissionResponse(message="Submission approved", payout=payout)


@router.post("/{competition_id}/submissions", response_model=SubmissionPublic, status_code=201)
async def create_submission(
    competition_id: UUID,
    payload: SubmissionCreate,
    session: AsyncSession = Depends(get_session),
):
    sub = await registry.add_submission(
        session, competition_id,
        username=payload.username, submission_type=payload.submission_type, code_link=payload.code_link,
    )
    return to_submission(sub)
