from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class TournamentWinner(Base):
    __tablename__ = "tournament_winners"
    __table_args__ = (
        CheckConstraint("rank >= 1", name="ck_tournament_winners_rank"),
        CheckConstraint("prize_amount > 0", name="ck_tournament_winners_prize_amount"),
        CheckConstraint(
            "payment_status IN ('pending','paid','failed')",
            name="ck_tournament_winners_payment_status",
        ),
        CheckConstraint(
            "(user_id IS NULL) <> (team_id IS NULL)",
            name="ck_tournament_winners_single_recipient",
        ),
        UniqueConstraint("tournament_id", "rank", name="uq_tournament_winners_tournament_rank"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        nullable=False,
    )
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=True)
    team_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournament_teams.id"),
        nullable=True,
    )
    receiver_user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    prize_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    payout_payment_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("payments.id"),
        nullable=True,
    )
    wallet_transaction_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("wallet_transactions.id"),
        nullable=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
