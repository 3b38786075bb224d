from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class TournamentTeam(Base):
    __tablename__ = "tournament_teams"
    __table_args__ = (
        CheckConstraint(
            "registration_status IN ('registered','cancelled','disqualified')",
            name="ck_tournament_teams_registration_status",
        ),
        CheckConstraint(
            "payment_status IN ('pending','paid','failed','refunded')",
            name="ck_tournament_teams_payment_status",
        ),
        UniqueConstraint(
            "tournament_id",
            "captain_user_id",
            name="uq_tournament_teams_tournament_captain",
        ),
        UniqueConstraint("join_code", name="uq_tournament_teams_join_code"),
        Index("idx_tournament_teams_payment", "payment_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        nullable=False,
    )
    team_name: Mapped[str] = mapped_column(String(64), nullable=False)
    team_tag: Mapped[str | None] = mapped_column(String(8), nullable=True)
    join_code: Mapped[str] = mapped_column(String(16), nullable=False)
    captain_user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    captain_game_id: Mapped[str] = mapped_column(String(32), nullable=False)
    captain_in_game_name: Mapped[str] = mapped_column(String(64), nullable=False)
    registration_status: Mapped[str] = mapped_column(String(16), nullable=False)
    payment_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("payments.id"),
        nullable=False,
    )
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class TournamentTeamMember(Base):
    __tablename__ = "tournament_team_members"
    __table_args__ = (
        UniqueConstraint("team_id", "position", name="uq_tournament_team_members_team_position"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    team_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournament_teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    game_id: Mapped[str] = mapped_column(String(32), nullable=False)
    in_game_name: Mapped[str] = mapped_column(String(64), nullable=False)
