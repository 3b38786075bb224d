from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class TournamentParticipant(Base):
    __tablename__ = "tournament_participants"
    __table_args__ = (
        CheckConstraint(
            "payment_status IN ('pending','paid','failed','refunded')",
            name="ck_tournament_participants_payment_status",
        ),
        Index("idx_tournament_participants_payment", "payment_id"),
        Index(
            "idx_tournament_participants_tournament_status",
            "tournament_id",
            "payment_status",
        ),
    )

    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), primary_key=True)
    game_id: Mapped[str] = mapped_column(String(32), nullable=False)
    in_game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    partner_game_id: Mapped[str | None] = mapped_column(String(32), nullable=True)
    partner_in_game_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    payment_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("payments.id"),
        nullable=False,
    )
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    registered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
