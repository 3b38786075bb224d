from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class WalletWithdrawal(Base):
    __tablename__ = "wallet_withdrawals"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_wallet_withdrawals_amount_positive"),
        CheckConstraint("method IN ('bank','upi')", name="ck_wallet_withdrawals_method"),
        CheckConstraint(
            "status IN ('pending','processing','completed','rejected')",
            name="ck_wallet_withdrawals_status",
        ),
        Index("idx_wallet_withdrawals_status_requested", "status", "requested_at"),
        Index("idx_wallet_withdrawals_user_requested", "user_id", "requested_at"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("wallets.user_id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    method: Mapped[str] = mapped_column(String(8), nullable=False)
    account_details: Mapped[dict[str, object]] = mapped_column(JSONB, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(String(256), nullable=True)
    transaction_reference: Mapped[str | None] = mapped_column(String(64), nullable=True)
