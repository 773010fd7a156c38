from __future__ import annotations
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Numeric, DateTime, ForeignKey, Uuid, func
from app.db import Base

MONEY = Numeric(14, 4)
MONEY_QUANTUM = Decimal("0.0001")

def to_money(value) -> Decimal:
    """Round to the stored scale so what is returned is what is persisted."""
    return Decimal(value or 0).quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class User(Base):
    __tablename__ = "users"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    xp: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_earnings: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    approved_submissions: Mapped[list["ApprovedSubmission"]] = relationship(
        back_populates="user", order_by="ApprovedSubmission.approved_at", lazy="selectin"
    )

class ApprovedSubmission(Base):
    """
    Payout history written by the approve-submission path.
    Σ(payout) per user tracks users.total_earnings for that path.
    """
    __tablename__ = "approved_submissions"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    competition_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("competitions.id", ondelete="CASCADE"), index=True, nullable=False)
    submission_type: Mapped[str] = mapped_column(String(32), nullable=False)
    payout: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    approved_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    user: Mapped[User] = relationship(back_populates="approved_submissions")
