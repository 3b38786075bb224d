"""ledger_core_schema

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0a1b2c3d4e5f"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

MONEY = sa.Numeric(12, 2)
UUID = postgresql.UUID(as_uuid=True)


def _ts(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("display_name", sa.String(64), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("game_id", sa.String(32), nullable=True),
        sa.Column("in_game_name", sa.String(64), nullable=True),
        sa.Column("role", sa.String(16), nullable=False, server_default=sa.text("'user'")),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("tournaments_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("tournaments_won", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_prize_money", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint("role IN ('user','admin','super_admin')", name="ck_users_role"),
        sa.CheckConstraint("total_prize_money >= 0", name="ck_users_total_prize_money"),
        sa.UniqueConstraint("game_id", name="uq_users_game_id"),
    )
    op.create_index("idx_users_created_at", "users", ["created_at"])

    op.create_table(
        "coupons",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("description", sa.String(256), nullable=True),
        sa.Column("discount_type", sa.String(8), nullable=False),
        sa.Column("discount_value", MONEY, nullable=False),
        sa.Column(
            "applicable_tournament_ids",
            postgresql.ARRAY(UUID),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column(
            "allowed_user_ids",
            postgresql.ARRAY(sa.BigInteger()),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column(
            "allowed_game_ids",
            postgresql.ARRAY(sa.String(32)),
            nullable=False,
            server_default=sa.text("'{}'"),
        ),
        sa.Column("min_order_amount", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("max_uses", sa.Integer(), nullable=True),
        sa.Column("max_uses_per_user", sa.Integer(), nullable=True, server_default=sa.text("1")),
        sa.Column("used_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("expires_at", nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_by", sa.BigInteger(), nullable=True),
        _ts("created_at"),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint("discount_type IN ('percent','flat','free')", name="ck_coupons_discount_type"),
        sa.CheckConstraint("discount_value >= 0", name="ck_coupons_discount_value"),
        sa.CheckConstraint("code = upper(code)", name="ck_coupons_code_upper"),
        sa.CheckConstraint("max_uses IS NULL OR max_uses > 0", name="ck_coupons_max_uses"),
        sa.CheckConstraint(
            "max_uses_per_user IS NULL OR max_uses_per_user > 0",
            name="ck_coupons_max_uses_per_user",
        ),
        sa.CheckConstraint("used_count >= 0", name="ck_coupons_used_count"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.UniqueConstraint("code", name="uq_coupons_code"),
    )
    op.create_index("idx_coupons_active_expires", "coupons", ["is_active", "expires_at"])

    op.create_table(
        "coupon_usages",
        sa.Column("coupon_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("use_count", sa.Integer(), nullable=False),
        _ts("last_used_at"),
        sa.CheckConstraint("use_count > 0", name="ck_coupon_usages_use_count"),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("coupon_id", "user_id"),
    )

    op.create_table(
        "tournaments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("title", sa.String(128), nullable=False),
        sa.Column("format", sa.String(8), nullable=False),
        sa.Column("team_size", sa.Integer(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=False),
        sa.Column("current_participants", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("registration_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("registration_start"),
        _ts("registration_end"),
        _ts("tournament_start", nullable=True),
        sa.Column("is_free", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("service_fee", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("prize_pool", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("status", sa.String(24), nullable=False),
        sa.Column("created_by", sa.BigInteger(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("created_at"),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint("format IN ('solo','duo','squad')", name="ck_tournaments_format"),
        sa.CheckConstraint("team_size IN (1,2,4)", name="ck_tournaments_team_size"),
        sa.CheckConstraint(
            "status IN ('upcoming','registration_open','registration_closed','live','completed','cancelled')",
            name="ck_tournaments_status",
        ),
        sa.CheckConstraint("max_participants > 0", name="ck_tournaments_max_participants_positive"),
        sa.CheckConstraint(
            "current_participants >= 0 AND current_participants <= max_participants",
            name="ck_tournaments_current_participants_range",
        ),
        sa.CheckConstraint("service_fee >= 0", name="ck_tournaments_service_fee"),
        sa.CheckConstraint(
            "registration_end > registration_start",
            name="ck_tournaments_registration_window",
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
    )
    op.create_index(
        "idx_tournaments_status_registration_end",
        "tournaments",
        ["status", "registration_end"],
    )

    op.create_table(
        "payments",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("payment_type", sa.String(16), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("tournament_id", UUID, nullable=True),
        sa.Column("team_id", UUID, nullable=True),
        sa.Column("paying_captain_id", sa.BigInteger(), nullable=True),
        sa.Column("base_amount", MONEY, nullable=False),
        sa.Column("discount_amount", MONEY, nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default=sa.text("'INR'")),
        sa.Column("payment_status", sa.String(24), nullable=False),
        sa.Column("payment_gateway", sa.String(16), nullable=False),
        sa.Column("payment_method", sa.String(16), nullable=True),
        sa.Column("coupon_id", sa.BigInteger(), nullable=True),
        sa.Column("coupon_code", sa.String(32), nullable=True),
        sa.Column("gateway_order_id", sa.String(64), nullable=True),
        sa.Column("gateway_payment_id", sa.String(64), nullable=True),
        sa.Column("gateway_signature", sa.String(128), nullable=True),
        sa.Column("transaction_id", sa.String(64), nullable=True),
        sa.Column("invoice_id", sa.String(32), nullable=False),
        sa.Column("requires_manual_review", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("verified_by", sa.BigInteger(), nullable=True),
        _ts("verified_at", nullable=True),
        sa.Column("internal_notes", sa.Text(), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _ts("initiated_at"),
        _ts("processing_at", nullable=True),
        _ts("completed_at", nullable=True),
        _ts("failed_at", nullable=True),
        _ts("refunded_at", nullable=True),
        _ts("cancelled_at", nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("created_at"),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint(
            "payment_type IN ('individual','team','prize_payout','refund','wallet_topup')",
            name="ck_payments_payment_type",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending','processing','success','failed','refunded',"
            "'partially_refunded','cancelled','expired','on_hold')",
            name="ck_payments_payment_status",
        ),
        sa.CheckConstraint(
            "payment_gateway IN ('manual','wallet','external','none')",
            name="ck_payments_payment_gateway",
        ),
        sa.CheckConstraint("base_amount >= 0", name="ck_payments_base_amount"),
        sa.CheckConstraint(
            "discount_amount >= 0 AND discount_amount <= base_amount",
            name="ck_payments_discount_amount",
        ),
        sa.CheckConstraint("amount = base_amount - discount_amount", name="ck_payments_amount"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["coupon_id"], ["coupons.id"]),
        sa.UniqueConstraint("gateway_order_id", name="uq_payments_gateway_order_id"),
        sa.UniqueConstraint("gateway_payment_id", name="uq_payments_gateway_payment_id"),
        sa.UniqueConstraint("invoice_id", name="uq_payments_invoice_id"),
    )
    op.create_index("idx_payments_user_created", "payments", ["user_id", "created_at"])
    op.create_index("idx_payments_tournament", "payments", ["tournament_id"])
    op.create_index("idx_payments_team", "payments", ["team_id"])
    op.create_index(
        "idx_payments_manual_review_status",
        "payments",
        ["payment_status", "created_at"],
        postgresql_where=sa.text("requires_manual_review"),
    )
    op.create_index("idx_payments_gateway_status", "payments", ["payment_gateway", "payment_status"])

    op.create_table(
        "tournament_teams",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("team_name", sa.String(64), nullable=False),
        sa.Column("team_tag", sa.String(8), nullable=True),
        sa.Column("join_code", sa.String(16), nullable=False),
        sa.Column("captain_user_id", sa.BigInteger(), nullable=False),
        sa.Column("captain_game_id", sa.String(32), nullable=False),
        sa.Column("captain_in_game_name", sa.String(64), nullable=False),
        sa.Column("registration_status", sa.String(16), nullable=False),
        sa.Column("payment_id", UUID, nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        _ts("created_at"),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint(
            "registration_status IN ('registered','cancelled','disqualified')",
            name="ck_tournament_teams_registration_status",
        ),
        sa.CheckConstraint(
            "payment_status IN ('pending','paid','failed','refunded')",
            name="ck_tournament_teams_payment_status",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["captain_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"]),
        sa.UniqueConstraint(
            "tournament_id",
            "captain_user_id",
            name="uq_tournament_teams_tournament_captain",
        ),
        sa.UniqueConstraint("join_code", name="uq_tournament_teams_join_code"),
    )
    op.create_index("idx_tournament_teams_payment", "tournament_teams", ["payment_id"])

    op.create_table(
        "tournament_team_members",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("team_id", UUID, nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("game_id", sa.String(32), nullable=False),
        sa.Column("in_game_name", sa.String(64), nullable=False),
        sa.ForeignKeyConstraint(["team_id"], ["tournament_teams.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("team_id", "position", name="uq_tournament_team_members_team_position"),
    )

    op.create_table(
        "tournament_participants",
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("game_id", sa.String(32), nullable=False),
        sa.Column("in_game_name", sa.String(64), nullable=False),
        sa.Column("partner_game_id", sa.String(32), nullable=True),
        sa.Column("partner_in_game_name", sa.String(64), nullable=True),
        sa.Column("payment_id", UUID, nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        _ts("registered_at"),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint(
            "payment_status IN ('pending','paid','failed','refunded')",
            name="ck_tournament_participants_payment_status",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"]),
        sa.PrimaryKeyConstraint("tournament_id", "user_id"),
    )
    op.create_index("idx_tournament_participants_payment", "tournament_participants", ["payment_id"])
    op.create_index(
        "idx_tournament_participants_tournament_status",
        "tournament_participants",
        ["tournament_id", "payment_status"],
    )

    op.create_table(
        "tournament_roster_game_ids",
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("game_id", sa.String(32), nullable=False),
        sa.Column("participant_user_id", sa.BigInteger(), nullable=True),
        sa.Column("team_id", UUID, nullable=True),
        sa.CheckConstraint(
            "(participant_user_id IS NULL) <> (team_id IS NULL)",
            name="ck_tournament_roster_game_ids_single_owner",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["participant_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["tournament_teams.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tournament_id", "game_id"),
    )
    op.create_index(
        "idx_tournament_roster_game_ids_participant",
        "tournament_roster_game_ids",
        ["tournament_id", "participant_user_id"],
    )
    op.create_index("idx_tournament_roster_game_ids_team", "tournament_roster_game_ids", ["team_id"])

    op.create_table(
        "wallets",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("balance", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total_deposited", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total_withdrawn", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total_earned", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("total_spent", MONEY, nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("is_locked", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("lock_reason", sa.String(256), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        _ts("created_at"),
        _ts("updated_at", nullable=True),
        sa.CheckConstraint("balance >= 0", name="ck_wallets_balance_non_negative"),
        sa.CheckConstraint(
            "total_deposited >= 0 AND total_withdrawn >= 0 AND total_earned >= 0 AND total_spent >= 0",
            name="ck_wallets_totals_non_negative",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("user_id"),
    )

    op.create_table(
        "wallet_withdrawals",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("method", sa.String(8), nullable=False),
        sa.Column("account_details", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        _ts("requested_at"),
        _ts("processed_at", nullable=True),
        sa.Column("processed_by", sa.BigInteger(), nullable=True),
        sa.Column("rejection_reason", sa.String(256), nullable=True),
        sa.Column("transaction_reference", sa.String(64), nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_wallet_withdrawals_amount_positive"),
        sa.CheckConstraint("method IN ('bank','upi')", name="ck_wallet_withdrawals_method"),
        sa.CheckConstraint(
            "status IN ('pending','processing','completed','rejected')",
            name="ck_wallet_withdrawals_status",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["wallets.user_id"]),
    )
    op.create_index(
        "idx_wallet_withdrawals_status_requested",
        "wallet_withdrawals",
        ["status", "requested_at"],
    )
    op.create_index(
        "idx_wallet_withdrawals_user_requested",
        "wallet_withdrawals",
        ["user_id", "requested_at"],
    )

    op.create_table(
        "wallet_transactions",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("kind", sa.String(16), nullable=False),
        sa.Column("direction", sa.String(8), nullable=False),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("balance_after", MONEY, nullable=False),
        sa.Column("description", sa.String(256), nullable=False),
        sa.Column("tournament_id", UUID, nullable=True),
        sa.Column("payment_id", UUID, nullable=True),
        sa.Column("withdrawal_id", UUID, nullable=True),
        sa.Column("is_hold_release", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("idempotency_key", sa.String(128), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _ts("created_at"),
        sa.CheckConstraint(
            "kind IN ('deposit','withdrawal','tournament_fee','prize_won','refund')",
            name="ck_wallet_transactions_kind",
        ),
        sa.CheckConstraint("direction IN ('credit','debit')", name="ck_wallet_transactions_direction"),
        sa.CheckConstraint(
            "status IN ('pending','completed','failed','cancelled')",
            name="ck_wallet_transactions_status",
        ),
        sa.CheckConstraint(
            "(direction = 'credit' AND amount > 0) OR (direction = 'debit' AND amount < 0)",
            name="ck_wallet_transactions_signed_amount",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["wallets.user_id"]),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"]),
        sa.ForeignKeyConstraint(["withdrawal_id"], ["wallet_withdrawals.id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_wallet_transactions_idempotency_key"),
    )
    op.create_index(
        "idx_wallet_transactions_user_created",
        "wallet_transactions",
        ["user_id", "created_at"],
    )
    op.create_index("idx_wallet_transactions_payment", "wallet_transactions", ["payment_id"])
    op.create_index("idx_wallet_transactions_withdrawal", "wallet_transactions", ["withdrawal_id"])
    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_wallet_transactions_append_only()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'wallet_transactions is append-only';
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_wallet_transactions_append_only
        BEFORE UPDATE OR DELETE ON wallet_transactions
        FOR EACH ROW
        EXECUTE FUNCTION fn_wallet_transactions_append_only();
        """
    )

    op.create_table(
        "payment_refunds",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("payment_id", UUID, nullable=False),
        sa.Column("request_key", sa.String(64), nullable=True),
        sa.Column("amount", MONEY, nullable=False),
        sa.Column("reason", sa.String(256), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("gateway_refund_id", sa.String(64), nullable=True),
        sa.Column("wallet_transaction_id", sa.BigInteger(), nullable=True),
        sa.Column("failure_reason", sa.String(256), nullable=True),
        sa.Column("initiated_by", sa.BigInteger(), nullable=False),
        _ts("requested_at"),
        _ts("processed_at", nullable=True),
        sa.CheckConstraint("amount > 0", name="ck_payment_refunds_amount_positive"),
        sa.CheckConstraint(
            "status IN ('pending','processed','failed')",
            name="ck_payment_refunds_status",
        ),
        sa.ForeignKeyConstraint(["payment_id"], ["payments.id"]),
        sa.ForeignKeyConstraint(["wallet_transaction_id"], ["wallet_transactions.id"]),
        sa.UniqueConstraint("gateway_refund_id", name="uq_payment_refunds_gateway_refund_id"),
        sa.UniqueConstraint(
            "payment_id",
            "request_key",
            name="uq_payment_refunds_payment_request_key",
        ),
    )
    op.create_index("idx_payment_refunds_payment", "payment_refunds", ["payment_id"])

    op.create_table(
        "tournament_winners",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("tournament_id", UUID, nullable=False),
        sa.Column("rank", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column("team_id", UUID, nullable=True),
        sa.Column("receiver_user_id", sa.BigInteger(), nullable=False),
        sa.Column("prize_amount", MONEY, nullable=False),
        sa.Column("payment_status", sa.String(16), nullable=False),
        sa.Column("payout_payment_id", UUID, nullable=True),
        sa.Column("wallet_transaction_id", sa.BigInteger(), nullable=True),
        _ts("paid_at", nullable=True),
        sa.Column("approved_by", sa.BigInteger(), nullable=False),
        _ts("created_at"),
        sa.CheckConstraint("rank >= 1", name="ck_tournament_winners_rank"),
        sa.CheckConstraint("prize_amount > 0", name="ck_tournament_winners_prize_amount"),
        sa.CheckConstraint(
            "payment_status IN ('pending','paid','failed')",
            name="ck_tournament_winners_payment_status",
        ),
        sa.CheckConstraint(
            "(user_id IS NULL) <> (team_id IS NULL)",
            name="ck_tournament_winners_single_recipient",
        ),
        sa.ForeignKeyConstraint(["tournament_id"], ["tournaments.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["team_id"], ["tournament_teams.id"]),
        sa.ForeignKeyConstraint(["receiver_user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["payout_payment_id"], ["payments.id"]),
        sa.ForeignKeyConstraint(["wallet_transaction_id"], ["wallet_transactions.id"]),
        sa.UniqueConstraint("tournament_id", "rank", name="uq_tournament_winners_tournament_rank"),
    )

    op.create_table(
        "reconciliation_runs",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("kind", sa.String(32), nullable=False),
        _ts("started_at"),
        _ts("finished_at", nullable=True),
        sa.Column("status", sa.String(8), nullable=False),
        sa.Column("diff_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "details",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.CheckConstraint("status IN ('OK','DIFF')", name="ck_reconciliation_runs_status"),
    )
    op.create_index(
        "idx_reconciliation_runs_kind_started",
        "reconciliation_runs",
        ["kind", "started_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_reconciliation_runs_kind_started", table_name="reconciliation_runs")
    op.drop_table("reconciliation_runs")
    op.drop_table("tournament_winners")
    op.drop_index("idx_payment_refunds_payment", table_name="payment_refunds")
    op.drop_table("payment_refunds")
    op.execute("DROP TRIGGER IF EXISTS trg_wallet_transactions_append_only ON wallet_transactions;")
    op.execute("DROP FUNCTION IF EXISTS fn_wallet_transactions_append_only();")
    op.drop_index("idx_wallet_transactions_withdrawal", table_name="wallet_transactions")
    op.drop_index("idx_wallet_transactions_payment", table_name="wallet_transactions")
    op.drop_index("idx_wallet_transactions_user_created", table_name="wallet_transactions")
    op.drop_table("wallet_transactions")
    op.drop_index("idx_wallet_withdrawals_user_requested", table_name="wallet_withdrawals")
    op.drop_index("idx_wallet_withdrawals_status_requested", table_name="wallet_withdrawals")
    op.drop_table("wallet_withdrawals")
    op.drop_table("wallets")
    op.drop_index("idx_tournament_roster_game_ids_team", table_name="tournament_roster_game_ids")
    op.drop_index(
        "idx_tournament_roster_game_ids_participant",
        table_name="tournament_roster_game_ids",
    )
    op.drop_table("tournament_roster_game_ids")
    op.drop_index(
        "idx_tournament_participants_tournament_status",
        table_name="tournament_participants",
    )
    op.drop_index("idx_tournament_participants_payment", table_name="tournament_participants")
    op.drop_table("tournament_participants")
    op.drop_table("tournament_team_members")
    op.drop_index("idx_tournament_teams_payment", table_name="tournament_teams")
    op.drop_table("tournament_teams")
    op.drop_index("idx_payments_gateway_status", table_name="payments")
    op.drop_index("idx_payments_manual_review_status", table_name="payments")
    op.drop_index("idx_payments_team", table_name="payments")
    op.drop_index("idx_payments_tournament", table_name="payments")
    op.drop_index("idx_payments_user_created", table_name="payments")
    op.drop_table("payments")
    op.drop_index("idx_tournaments_status_registration_end", table_name="tournaments")
    op.drop_table("tournaments")
    op.drop_table("coupon_usages")
    op.drop_index("idx_coupons_active_expires", table_name="coupons")
    op.drop_table("coupons")
    op.drop_index("idx_users_created_at", table_name="users")
    op.drop_table("users")
