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
    Numeric,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import AppendOnlyMixin, Base


class WalletTransaction(AppendOnlyMixin, Base):
    __tablename__ = "wallet_transactions"
    __table_args__ = (
        CheckConstraint(
            "kind IN ('deposit','withdrawal','tournament_fee','prize_won','refund')",
            name="ck_wallet_transactions_kind",
        ),
        CheckConstraint("direction IN ('credit','debit')", name="ck_wallet_transactions_direction"),
        CheckConstraint(
            "status IN ('pending','completed','failed','cancelled')",
            name="ck_wallet_transactions_status",
        ),
        CheckConstraint(
            "(direction = 'credit' AND amount > 0) OR (direction = 'debit' AND amount < 0)",
            name="ck_wallet_transactions_signed_amount",
        ),
        Index("idx_wallet_transactions_user_created", "user_id", "created_at"),
        Index("idx_wallet_transactions_payment", "payment_id"),
        Index("idx_wallet_transactions_withdrawal", "withdrawal_id"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("wallets.user_id"), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    direction: Mapped[str] = mapped_column(String(8), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    balance_after: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(256), nullable=False)
    tournament_id: Mapped[UUID | None] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    payment_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("payments.id"),
        nullable=True,
    )
    withdrawal_id: Mapped[UUID | None] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("wallet_withdrawals.id"),
        nullable=True,
    )
    is_hold_release: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        server_default=text("false"),
    )
    idempotency_key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
