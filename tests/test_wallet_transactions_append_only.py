from __future__ import annotations

from types import SimpleNamespace

import pytest

from app.db.models.base import _reject_append_only_mutations
from app.db.models.wallet_transactions import WalletTransaction
from app.db.models.wallet_withdrawals import WalletWithdrawal


def _session(*, deleted=(), dirty=(), modified: bool = True) -> SimpleNamespace:
    return SimpleNamespace(
        deleted=list(deleted),
        dirty=list(dirty),
        is_modified=lambda instance, include_collections=False: modified,  # noqa: ARG005
    )


def test_updating_a_wallet_transaction_is_rejected() -> None:
    with pytest.raises(ValueError, match="wallet_transactions is append-only"):
        _reject_append_only_mutations(_session(dirty=[WalletTransaction()]), None, None)


def test_deleting_a_wallet_transaction_is_rejected() -> None:
    with pytest.raises(ValueError, match="append-only"):
        _reject_append_only_mutations(_session(deleted=[WalletTransaction()]), None, None)


def test_unmodified_transactions_and_mutable_rows_pass() -> None:
    _reject_append_only_mutations(_session(dirty=[WalletTransaction()], modified=False), None, None)
    _reject_append_only_mutations(_session(dirty=[WalletWithdrawal()]), None, None)
