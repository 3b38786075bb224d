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
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        CheckConstraint(
            "payment_type IN ('individual','team','prize_payout','refund','wallet_topup')",
            name="ck_payments_payment_type",
        ),
        CheckConstraint(
            "payment_status IN ('pending','processing','success','failed','refunded',"
            "'partially_refunded','cancelled','expired','on_hold')",
            name="ck_payments_payment_status",
        ),
        CheckConstraint(
            "payment_gateway IN ('manual','wallet','external','none')",
            name="ck_payments_payment_gateway",
        ),
        CheckConstraint("base_amount >= 0", name="ck_payments_base_amount"),
        CheckConstraint(
            "discount_amount >= 0 AND discount_amount <= base_amount",
            name="ck_payments_discount_amount",
        ),
        CheckConstraint("amount = base_amount - discount_amount", name="ck_payments_amount"),
        Index("idx_payments_user_created", "user_id", "created_at"),
        Index("idx_payments_tournament", "tournament_id"),
        Index("idx_payments_team", "team_id"),
        Index(
            "idx_payments_manual_review_status",
            "payment_status",
            "created_at",
            postgresql_where=text("requires_manual_review"),
        ),
        Index("idx_payments_gateway_status", "payment_gateway", "payment_status"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    payment_type: Mapped[str] = mapped_column(String(16), nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("users.id"), nullable=False)
    tournament_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("tournaments.id"),
        nullable=True,
    )
    team_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    paying_captain_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    base_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default=text("'INR'"))

    payment_status: Mapped[str] = mapped_column(String(24), nullable=False)
    payment_gateway: Mapped[str] = mapped_column(String(16), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String(16), nullable=True)

    coupon_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey("coupons.id"), nullable=True)
    coupon_code: Mapped[str | None] = mapped_column(String(32), nullable=True)

    gateway_order_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    gateway_payment_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    gateway_signature: Mapped[str | None] = mapped_column(String(128), nullable=True)
    transaction_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    invoice_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    requires_manual_review: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    verified_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    internal_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )

    initiated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    processing_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    failed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
