from __future__ import annotations

from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class TournamentRosterGameId(Base):
    __tablename__ = "tournament_roster_game_ids"
    __table_args__ = (
        CheckConstraint(
            "(participant_user_id IS NULL) <> (team_id IS NULL)",
            name="ck_tournament_roster_game_ids_single_owner",
        ),
        Index("idx_tournament_roster_game_ids_participant", "tournament_id", "participant_user_id"),
        Index("idx_tournament_roster_game_ids_team", "team_id"),
    )

    tournament_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        primary_key=True,
    )
    game_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    participant_user_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("users.id"),
        nullable=True,
    )
    team_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournament_teams.id", ondelete="CASCADE"),
        nullable=True,
    )
