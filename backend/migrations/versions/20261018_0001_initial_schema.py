from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None

MONEY = sa.Numeric(14, 4)

def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_earnings", MONEY, nullable=False, server_default="0"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    op.create_table(
        "competitions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="Live"),
        sa.Column("reward", MONEY, nullable=True),
        sa.Column("reward_distribution_feature", MONEY, nullable=True),
        sa.Column("reward_distribution_optimization", MONEY, nullable=True),
        sa.Column("reward_distribution_bugs", MONEY, nullable=True),
        sa.Column("reward_feature", MONEY, nullable=True),
        sa.Column("reward_bug", MONEY, nullable=True),
        sa.Column("reward_optimization", MONEY, nullable=True),
        sa.Column("reward_security", MONEY, nullable=True),
        sa.Column("points", sa.Integer(), nullable=True),
        sa.Column("languages", postgresql.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.Column("types", postgresql.JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("website_link", sa.Text(), nullable=True),
        sa.Column("repository_link", sa.Text(), nullable=True),
        sa.Column("competition_details", sa.Text(), nullable=True),
        sa.Column("how_to_guide", sa.Text(), nullable=True),
        sa.Column("scope", sa.Text(), nullable=True),
        sa.Column("total_earnings", MONEY, nullable=False, server_default="0"),
        sa.Column("features", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bugs", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("optimisations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("lead_judge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )

    op.create_table(
        "competition_judges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("competition_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("added_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_competition_judges_competition_id", "competition_judges", ["competition_id"])
    op.create_index("ix_competition_judges_user_id", "competition_judges", ["user_id"])

    op.create_table(
        "competition_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("competition_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submission_type", sa.String(length=16), nullable=False),
        sa.Column("code_link", sa.Text(), nullable=True),
        sa.Column("timestamp", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("payout", MONEY, nullable=False, server_default="0"),
    )
    op.create_index("ix_competition_submissions_competition_id", "competition_submissions", ["competition_id"])
    op.create_index("ix_competition_submissions_user_id", "competition_submissions", ["user_id"])

    op.create_table(
        "approved_submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("competition_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("submission_type", sa.String(length=32), nullable=False),
        sa.Column("payout", MONEY, nullable=False, server_default="0"),
        sa.Column("approved_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_approved_submissions_user_id", "approved_submissions", ["user_id"])
    op.create_index("ix_approved_submissions_competition_id", "approved_submissions", ["competition_id"])

def downgrade() -> None:
    op.drop_index("ix_approved_submissions_competition_id", table_name="approved_submissions")
    op.drop_index("ix_approved_submissions_user_id", table_name="approved_submissions")
    op.drop_table("approved_submissions")
    op.drop_index("ix_competition_submissions_user_id", table_name="competition_submissions")
    op.drop_index("ix_competition_submissions_competition_id", table_name="competition_submissions")
    op.drop_table("competition_submissions")
    op.drop_index("ix_competition_judges_user_id", table_name="competition_judges")
    op.drop_index("ix_competition_judges_competition_id", table_name="competition_judges")
    op.drop_table("competition_judges")
    op.drop_table("competitions")
    op.drop_index("ix_users_username", table_name="users")
    op.drop_table("users")
