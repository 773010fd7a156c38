from __future__ import annotations
from uuid import UUID
from datetime import datetime
from app.schemas.common import CamelModel, Money

class UserPublic(CamelModel):
    id: UUID
    username: str
    xp: int
    total_earnings: Money

class ApprovedSubmissionPublic(CamelModel):
    competition_id: UUID
    submission_type: str
    payout: Money
    approved_at: datetime

class UserDetail(UserPublic):
    approved_submissions: list[ApprovedSubmissionPublic]
