from __future__ import annotations
from pydantic import Field
from typing import Literal
from uuid import UUID
from datetime import datetime
from app.schemas.common import CamelModel, Money
from app.schemas.user import UserPublic

CompetitionStatus = Literal["Upcoming", "Live", "Judging", "Completed"]
SubmissionType = Literal["Feature", "Bug", "Optimization", "Security"]
Classification = Literal["feature", "bug", "optimization", "security"]

class RewardBreakdown(CamelModel):
    feature: Money | None = None
    bug: Money | None = None
    optimization: Money | None = None
    security: Money | None = None

class RewardDistribution(CamelModel):
    """Percent of the flat reward paid per approved submission type."""
    feature: Money | None = None
    optimization: Money | None = None
    bugs: Money | None = None

class JudgePanel(CamelModel):
    lead_judge: UserPublic | None = None
    judges: list[UserPublic] = Field(default_factory=list)

class SubmissionPublic(CamelModel):
    id: UUID
    user_id: UUID
    username: str
    submission_type: SubmissionType
    code_link: str | None = None
    timestamp: datetime
    approved: bool
    payout: Money

class CompetitionSummary(CamelModel):
    id: UUID
    name: str
    description: str | None = None
    status: str
    reward: Money | None = None
    points: int | None = None
    image: str | None = None
    languages: list[str] = Field(default_factory=list)
    types: list[str] = Field(default_factory=list)
    start_date: datetime | None = None
    end_date: datetime | None = None

class CompetitionDetail(CompetitionSummary):
    rewards: RewardBreakdown
    reward_distribution: RewardDistribution
    website_link: str | None = None
    repository_link: str | None = None
    competition_details: str | None = None
    how_to_guide: str | None = None
    scope: str | None = None
    total_earnings: Money
    features: int
    bugs: int
    optimisations: int
    judges: JudgePanel
    submissions: list[SubmissionPublic] = Field(default_factory=list)

class PageMeta(CamelModel):
    total_records: int
    total_pages: int
    current_page: int
    limit: int

class CompetitionPage(CamelModel):
    message: str
    meta_data: PageMeta
    result: list[CompetitionSummary]

class CompetitionEnvelope(CamelModel):
    message: str
    competition: CompetitionDetail

# --- requests ---

class JudgeUpdate(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    type: str = Field(min_length=1, max_length=32)  # only "judge" adds to the panel

class MakeJudgeRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)

class StatusUpdate(CamelModel):
    status: CompetitionStatus

class ApprovePRRequest(CamelModel):
    pr_number: int = Field(gt=0)

class ApprovePRResponse(CamelModel):
    message: str
    payout: Money
    classification: Classification | None = None

class ApproveSubmissionRequest(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    # Free-form: unknown types are accepted and pay 0
    submission_type: str = Field(min_length=1, max_length=32)

class ApproveSubmissionResponse(CamelModel):
    message: str
    payout: Money

class SubmissionCreate(CamelModel):
    username: str = Field(min_length=1, max_length=64)
    submission_type: SubmissionType
    code_link: str | None = Field(default=None, max_length=2048)
