from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PaymentRefund(Base):
    __tablename__ = "payment_refunds"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_refunds_amount_positive"),
        CheckConstraint(
            "status IN ('pending','processed','failed')",
            name="ck_payment_refunds_status",
        ),
        UniqueConstraint("payment_id", "request_key", name="uq_payment_refunds_payment_request_key"),
        Index("idx_payment_refunds_payment", "payment_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    payment_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("payments.id"),
        nullable=False,
    )
    request_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reason: Mapped[str] = mapped_column(String(256), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    gateway_refund_id: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    wallet_transaction_id: Mapped[int | None] = mapped_column(
        BigInteger,
        ForeignKey("wallet_transactions.id"),
        nullable=True,
    )
    failure_reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    initiated_by: Mapped[int] = mapped_column(BigInteger, nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
