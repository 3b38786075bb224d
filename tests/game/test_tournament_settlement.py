from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from app.game.tournaments import settlement
from app.game.tournaments.errors import (
    TournamentNotFoundError,
    WinnerEntryInvalidError,
    WinnerRecipientNotRegisteredError,
)
from app.game.tournaments.types import WinnerEntryInput, WinnerSettlementOutcome

UTC = timezone.utc
NOW_UTC = datetime(2026, 3, 2, 18, 0, tzinfo=UTC)
TOURNAMENT_ID = uuid4()


class _Transaction:
    def __init__(self, log: list[str]) -> None:
        self._log = log

    async def __aenter__(self) -> object:
        self._log.append("begin")
        return object()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        self._log.append("rollback" if exc_type else "commit")
        return False


class _SessionFactory:
    def __init__(self) -> None:
        self.log: list[str] = []

    def begin(self) -> _Transaction:
        return _Transaction(self.log)


def _patch_tournament(monkeypatch: pytest.MonkeyPatch, *, exists: bool = True) -> list[str]:
    completed: list[str] = []

    async def fake_get_by_id(session, tournament_id):  # noqa: ARG001
        return SimpleNamespace(id=tournament_id, status="live") if exists else None

    async def fake_mark_completed(session, *, tournament_id, now_utc):  # noqa: ARG001
        completed.append(str(tournament_id))
        return "completed"

    monkeypatch.setattr(settlement.TournamentsRepo, "get_by_id", staticmethod(fake_get_by_id))
    monkeypatch.setattr(settlement, "_mark_completed", fake_mark_completed)
    return completed


def _paid(rank: int, prize: Decimal) -> WinnerSettlementOutcome:
    return WinnerSettlementOutcome(
        rank=rank,
        status="paid",
        prize_amount=prize,
        receiver_user_id=100 + rank,
        wallet_transaction_id=rank,
        paid_at=NOW_UTC,
    )


async def _declare(factory: _SessionFactory, entries: list[WinnerEntryInput]):
    return await settlement.declare_winners(
        tournament_id=TOURNAMENT_ID,
        entries=entries,
        admin_user_id=1,
        currency="INR",
        now_utc=NOW_UTC,
        session_factory=factory,
    )


@pytest.mark.asyncio
async def test_declare_winners_settles_in_rank_order_and_completes(monkeypatch) -> None:
    completed = _patch_tournament(monkeypatch)
    seen_ranks: list[int] = []

    async def fake_settle(session, *, tournament_id, entry, admin_user_id, currency, now_utc):  # noqa: ARG001
        seen_ranks.append(entry.rank)
        return _paid(entry.rank, entry.prize_amount)

    monkeypatch.setattr(settlement, "settle_winner_entry", fake_settle)
    factory = _SessionFactory()

    result = await _declare(
        factory,
        [
            WinnerEntryInput(rank=2, prize_amount=Decimal("300"), user_id=12),
            WinnerEntryInput(rank=1, prize_amount=Decimal("700"), user_id=11),
        ],
    )

    assert seen_ranks == [1, 2]
    assert [entry.status for entry in result.entries] == ["paid", "paid"]
    assert result.entries[0].prize_amount == Decimal("700.00")
    assert result.failed_ranks == []
    assert result.tournament_status == "completed"
    assert completed == [str(TOURNAMENT_ID)]


@pytest.mark.asyncio
async def test_failed_entry_is_isolated_and_tournament_stays_open(monkeypatch) -> None:
    completed = _patch_tournament(monkeypatch)

    async def fake_settle(session, *, tournament_id, entry, admin_user_id, currency, now_utc):  # noqa: ARG001
        if entry.rank == 2:
            raise WinnerRecipientNotRegisteredError
        return _paid(entry.rank, entry.prize_amount)

    monkeypatch.setattr(settlement, "settle_winner_entry", fake_settle)
    factory = _SessionFactory()

    result = await _declare(
        factory,
        [
            WinnerEntryInput(rank=1, prize_amount=Decimal("700"), user_id=11),
            WinnerEntryInput(rank=2, prize_amount=Decimal("300"), user_id=99),
            WinnerEntryInput(rank=3, prize_amount=Decimal("100"), user_id=13),
        ],
    )

    assert [entry.status for entry in result.entries] == ["paid", "failed", "paid"]
    failed = result.entries[1]
    assert failed.error_code == "E_WINNER_RECIPIENT_NOT_REGISTERED"
    assert failed.error_kind == "precondition"
    assert result.failed_ranks == [2]
    assert result.tournament_status == "live"
    assert completed == []
    assert factory.log.count("rollback") == 1


@pytest.mark.asyncio
async def test_storage_error_is_reported_as_retryable(monkeypatch) -> None:
    _patch_tournament(monkeypatch)

    async def fake_settle(session, *, tournament_id, entry, admin_user_id, currency, now_utc):  # noqa: ARG001
        raise OperationalError("UPDATE wallets", {}, Exception("deadlock detected"))

    monkeypatch.setattr(settlement, "settle_winner_entry", fake_settle)

    result = await _declare(
        _SessionFactory(),
        [WinnerEntryInput(rank=1, prize_amount=Decimal("500"), user_id=11)],
    )

    assert result.entries[0].error_code == "E_STORAGE"
    assert result.entries[0].error_kind == "state_conflict"


@pytest.mark.asyncio
async def test_already_paid_ranks_count_as_settled(monkeypatch) -> None:
    completed = _patch_tournament(monkeypatch)

    async def fake_settle(session, *, tournament_id, entry, admin_user_id, currency, now_utc):  # noqa: ARG001
        outcome = _paid(entry.rank, entry.prize_amount)
        outcome.status = "already_paid"
        return outcome

    monkeypatch.setattr(settlement, "settle_winner_entry", fake_settle)

    result = await _declare(
        _SessionFactory(),
        [WinnerEntryInput(rank=1, prize_amount=Decimal("500"), user_id=11)],
    )

    assert result.entries[0].status == "already_paid"
    assert completed == [str(TOURNAMENT_ID)]


@pytest.mark.asyncio
async def test_unknown_tournament_raises_before_any_entry(monkeypatch) -> None:
    _patch_tournament(monkeypatch, exists=False)
    calls: list[int] = []

    async def fake_settle(session, *, tournament_id, entry, admin_user_id, currency, now_utc):  # noqa: ARG001
        calls.append(entry.rank)

    monkeypatch.setattr(settlement, "settle_winner_entry", fake_settle)

    with pytest.raises(TournamentNotFoundError):
        await _declare(
            _SessionFactory(),
            [WinnerEntryInput(rank=1, prize_amount=Decimal("500"), user_id=11)],
        )
    assert calls == []


@pytest.mark.asyncio
async def test_invalid_entries_are_rejected_up_front() -> None:
    with pytest.raises(WinnerEntryInvalidError):
        await _declare(_SessionFactory(), [])
    with pytest.raises(WinnerEntryInvalidError):
        await _declare(
            _SessionFactory(),
            [
                WinnerEntryInput(rank=1, prize_amount=Decimal("500"), user_id=11),
                WinnerEntryInput(rank=1, prize_amount=Decimal("100"), user_id=12),
            ],
        )
