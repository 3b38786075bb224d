from __future__ import annotations

from sqlalchemy import CheckConstraint, UniqueConstraint

from app.db.models import (  # noqa: F401
    Coupon,
    CouponUsage,
    Payment,
    PaymentRefund,
    ReconciliationRun,
    Tournament,
    TournamentParticipant,
    TournamentRosterGameId,
    TournamentTeam,
    TournamentTeamMember,
    TournamentWinner,
    User,
    Wallet,
    WalletTransaction,
    WalletWithdrawal,
)
from app.db.models.base import Base


def _check_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name for constraint in table.constraints if isinstance(constraint, CheckConstraint)
    }


def _unique_names(table_name: str) -> set[str]:
    table = Base.metadata.tables[table_name]
    return {
        constraint.name for constraint in table.constraints if isinstance(constraint, UniqueConstraint)
    }


def _index_names(table_name: str) -> set[str]:
    return {index.name for index in Base.metadata.tables[table_name].indexes}


def test_all_ledger_tables_registered() -> None:
    expected_tables = {
        "users",
        "coupons",
        "coupon_usages",
        "tournaments",
        "tournament_participants",
        "tournament_teams",
        "tournament_team_members",
        "tournament_roster_game_ids",
        "tournament_winners",
        "payments",
        "payment_refunds",
        "wallets",
        "wallet_transactions",
        "wallet_withdrawals",
        "reconciliation_runs",
    }
    assert expected_tables.issubset(set(Base.metadata.tables))


def test_money_constraints_present() -> None:
    assert {"ck_payments_amount", "ck_payments_discount_amount"} <= _check_names("payments")
    assert "ck_wallets_balance_non_negative" in _check_names("wallets")
    assert "ck_wallet_transactions_signed_amount" in _check_names("wallet_transactions")
    assert "ck_wallet_withdrawals_amount_positive" in _check_names("wallet_withdrawals")
    assert "ck_tournaments_current_participants_range" in _check_names("tournaments")

    wallet_transactions = Base.metadata.tables["wallet_transactions"]
    assert wallet_transactions.c.idempotency_key.unique is True


def test_roster_and_winner_uniqueness_present() -> None:
    assert "uq_tournament_teams_tournament_captain" in _unique_names("tournament_teams")
    assert "uq_tournament_teams_join_code" in _unique_names("tournament_teams")
    assert "uq_tournament_winners_tournament_rank" in _unique_names("tournament_winners")
    assert "ck_tournament_roster_game_ids_single_owner" in _check_names("tournament_roster_game_ids")

    roster_game_ids = Base.metadata.tables["tournament_roster_game_ids"]
    assert {column.name for column in roster_game_ids.primary_key.columns} == {
        "tournament_id",
        "game_id",
    }


def test_payment_indexes_present() -> None:
    payment_indexes = _index_names("payments")
    assert "idx_payments_manual_review_status" in payment_indexes
    assert "idx_payments_gateway_status" in payment_indexes

    payments = Base.metadata.tables["payments"]
    assert payments.c.gateway_payment_id.unique is True
    assert payments.c.invoice_id.unique is True


def test_refund_request_key_is_unique_per_payment() -> None:
    assert "uq_payment_refunds_payment_request_key" in _unique_names("payment_refunds")
    refunds = Base.metadata.tables["payment_refunds"]
    assert refunds.c.processed_at.nullable is True
    assert refunds.c.request_key.nullable is True
