from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Tournament(Base):
    __tablename__ = "tournaments"
    __table_args__ = (
        CheckConstraint("format IN ('solo','duo','squad')", name="ck_tournaments_format"),
        CheckConstraint("team_size IN (1,2,4)", name="ck_tournaments_team_size"),
        CheckConstraint(
            "status IN ('upcoming','registration_open','registration_closed','live','completed','cancelled')",
            name="ck_tournaments_status",
        ),
        CheckConstraint("max_participants > 0", name="ck_tournaments_max_participants_positive"),
        CheckConstraint(
            "current_participants >= 0 AND current_participants <= max_participants",
            name="ck_tournaments_current_participants_range",
        ),
        CheckConstraint("service_fee >= 0", name="ck_tournaments_service_fee"),
        CheckConstraint(
            "registration_end > registration_start",
            name="ck_tournaments_registration_window",
        ),
        Index("idx_tournaments_status_registration_end", "status", "registration_end"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    format: Mapped[str] = mapped_column(String(8), nullable=False)
    team_size: Mapped[int] = mapped_column(Integer, nullable=False)
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    current_participants: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    registration_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    registration_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    registration_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    tournament_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    service_fee: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    prize_pool: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default=text("0"))
    status: Mapped[str] = mapped_column(String(24), nullable=False)
    created_by: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
