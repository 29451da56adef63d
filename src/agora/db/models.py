"""ORM models for users and achievement claims.

Tasks, votes, participants and donations live on chain; only the per-user
counters derived from them are kept here.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora.db.base import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")

# Donation totals accumulate u64 amounts without bound, past signed BIGINT.
MIST_TOTAL_DIGITS = 39
MIST_TOTAL_MAX = 10**MIST_TOTAL_DIGITS - 1


class MistTotal(TypeDecorator):
    """NUMERIC(39, 0) column surfaced as a Python int."""

    impl = Numeric
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(MIST_TOTAL_DIGITS, 0)

    def process_bind_param(self, value, dialect):  # noqa: ARG002
        return None if value is None else Decimal(int(value))

    def process_result_value(self, value, dialect):  # noqa: ARG002
        return None if value is None else int(value)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Platform user with accumulated activity counters."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True)
    first_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    avatar: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- External identities ---
    intra_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    oauth_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)

    # --- Wallets ---
    # Virtual wallet: managed for the user, set at registration or via /user/wallet.
    sui_wallet_address: Mapped[str | None] = mapped_column(String(66), nullable=True, index=True)
    # Real wallet: bound by the zkLogin flow.
    real_wallet_address: Mapped[str | None] = mapped_column(String(66), unique=True, nullable=True)
    zklogin_salt: Mapped[str | None] = mapped_column(String(64), nullable=True)
    zklogin_subject: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # --- Counters ---
    tasks_created: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    tasks_participated: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    votes_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    donations_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)
    total_donated: Mapped[int] = mapped_column(MistTotal, default=0, server_default="0", nullable=False)
    reputation_score: Mapped[int] = mapped_column(Integer, default=0, server_default="0", nullable=False)

    # --- On-chain profile ---
    profile_id: Mapped[str | None] = mapped_column(String(66), unique=True, nullable=True)
    auto_claim: Mapped[bool] = mapped_column(Boolean, default=False, server_default="false", nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    claims: Mapped[list[AchievementClaim]] = relationship(
        "AchievementClaim",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def wallet_address(self) -> str | None:
        """Address used for sponsored actions: the bound real wallet, else the virtual one."""
        return self.real_wallet_address or self.sui_wallet_address


# ---------------------------------------------------------------------------
# Achievement claims
# ---------------------------------------------------------------------------


class AchievementClaim(Base):
    """One minted achievement NFT per (user, achievement type)."""

    __tablename__ = "achievement_claims"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_type", name="uq_achievement_claims_user_kind"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    achievement_type: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    nft_object_id: Mapped[str | None] = mapped_column(String(66), nullable=True)
    digest: Mapped[str | None] = mapped_column(String(64), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, nullable=False)

    user: Mapped[User] = relationship("User", back_populates="claims")
