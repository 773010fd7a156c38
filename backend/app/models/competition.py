from __future__ import annotations
import uuid
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Boolean, DateTime, ForeignKey, Text, JSON, Uuid, func
from app.db import Base
from app.models.user import User, MONEY, utcnow

class Competition(Base):
    __tablename__ = "competitions"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Live")  # Upcoming|Live|Judging|Completed

    # Flat prize, split by reward_distribution_* percentages (approve-submission path)
    reward: Mapped[Decimal | None] = mapped_column(MONEY)
    reward_distribution_feature: Mapped[Decimal | None] = mapped_column(MONEY)
    reward_distribution_optimization: Mapped[Decimal | None] = mapped_column(MONEY)
    reward_distribution_bugs: Mapped[Decimal | None] = mapped_column(MONEY)

    # Per-label amounts (approve-pr path)
    reward_feature: Mapped[Decimal | None] = mapped_column(MONEY)
    reward_bug: Mapped[Decimal | None] = mapped_column(MONEY)
    reward_optimization: Mapped[Decimal | None] = mapped_column(MONEY)
    reward_security: Mapped[Decimal | None] = mapped_column(MONEY)

    points: Mapped[int | None] = mapped_column(Integer)  # xp awarded
    languages: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    types: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    image: Mapped[str | None] = mapped_column(Text())
    website_link: Mapped[str | None] = mapped_column(Text())
    repository_link: Mapped[str | None] = mapped_column(Text())
    competition_details: Mapped[str | None] = mapped_column(Text())
    how_to_guide: Mapped[str | None] = mapped_column(Text())
    scope: Mapped[str | None] = mapped_column(Text())

    # Counters bumped by PR reconciliation
    total_earnings: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    features: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bugs: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    optimisations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    lead_judge_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    lead_judge: Mapped[User | None] = relationship(lazy="selectin")
    judge_links: Mapped[list["CompetitionJudge"]] = relationship(
        order_by="CompetitionJudge.position", lazy="selectin", cascade="all, delete-orphan"
    )
    submissions: Mapped[list["CompetitionSubmission"]] = relationship(
        order_by="CompetitionSubmission.timestamp", lazy="selectin", cascade="all, delete-orphan"
    )

    @property
    def judges(self) -> list[User]:
        return [link.user for link in self.judge_links]

class CompetitionJudge(Base):
    """Judge panel membership. Uniqueness is checked by the judges service, not here."""
    __tablename__ = "competition_judges"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    competition_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competitions.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False)  # assignment order, used as xp tie-break
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    user: Mapped[User] = relationship(lazy="selectin")

class CompetitionSubmission(Base):
    __tablename__ = "competition_submissions"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    competition_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competitions.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    submission_type: Mapped[str] = mapped_column(String(16), nullable=False)  # Feature|Bug|Optimization|Security
    code_link: Mapped[str | None] = mapped_column(Text())
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    payout: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))

    user: Mapped[User] = relationship(lazy="selectin")
