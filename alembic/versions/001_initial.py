"""Initial schema: users and achievement claims.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17
"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create users and achievement_claims."""
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(64), nullable=True),
        sa.Column("first_name", sa.String(128), nullable=True),
        sa.Column("last_name", sa.String(128), nullable=True),
        sa.Column("avatar", sa.Text(), nullable=True),
        sa.Column("intra_id", sa.String(64), nullable=True),
        sa.Column("oauth_id", sa.String(255), nullable=True),
        sa.Column("sui_wallet_address", sa.String(66), nullable=True),
        sa.Column("real_wallet_address", sa.String(66), nullable=True),
        sa.Column("zklogin_salt", sa.String(64), nullable=True),
        sa.Column("zklogin_subject", sa.String(255), nullable=True),
        sa.Column("tasks_created", sa.Integer(), server_default="0", nullable=False),
        sa.Column("tasks_participated", sa.Integer(), server_default="0", nullable=False),
        sa.Column("votes_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("donations_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("total_donated", sa.Numeric(39, 0), server_default="0", nullable=False),
        sa.Column("reputation_score", sa.Integer(), server_default="0", nullable=False),
        sa.Column("profile_id", sa.String(66), nullable=True),
        sa.Column("auto_claim", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.UniqueConstraint("intra_id", name="uq_users_intra_id"),
        sa.UniqueConstraint("oauth_id", name="uq_users_oauth_id"),
        sa.UniqueConstraint("real_wallet_address", name="uq_users_real_wallet_address"),
        sa.UniqueConstraint("profile_id", name="uq_users_profile_id"),
    )
    op.create_index("ix_users_sui_wallet_address", "users", ["sui_wallet_address"])

    op.create_table(
        "achievement_claims",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("achievement_type", sa.SmallInteger(), nullable=False),
        sa.Column("nft_object_id", sa.String(66), nullable=True),
        sa.Column("digest", sa.String(64), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("user_id", "achievement_type", name="uq_achievement_claims_user_kind"),
    )
    op.create_index("ix_achievement_claims_user_id", "achievement_claims", ["user_id"])


def downgrade() -> None:
    op.drop_index("ix_achievement_claims_user_id", table_name="achievement_claims")
    op.drop_table("achievement_claims")
    op.drop_index("ix_users_sui_wallet_address", table_name="users")
    op.drop_table("users")
