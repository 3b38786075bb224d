from __future__ import annotations

from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from fastapi.testclient import TestClient

from app.api.routes import tournaments
from app.game.tournaments.errors import GameIdAlreadyRegisteredError, TournamentFullError
from app.game.tournaments.types import RegistrationResult
from app.main import app

TOKEN = "internal-secret"


class _Transaction:
    async def __aenter__(self) -> object:
        return object()

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        return False


class _SessionFactory:
    def begin(self) -> _Transaction:
        return _Transaction()


def _settings(**overrides: object) -> SimpleNamespace:
    base: dict[str, object] = {
        "internal_api_token": TOKEN,
        "internal_api_allowlist": "127.0.0.1/32",
        "internal_api_trusted_proxies": "",
        "payment_currency": "INR",
    }
    base.update(overrides)
    return SimpleNamespace(**base)


def _headers(**extra: str) -> dict[str, str]:
    return {"X-Internal-Token": TOKEN, "X-Caller-Id": "42", **extra}


def _patch(monkeypatch, register_player) -> None:
    monkeypatch.setattr(tournaments, "get_settings", lambda: _settings())
    monkeypatch.setattr(tournaments, "SessionLocal", _SessionFactory())
    monkeypatch.setattr(tournaments, "register_player", register_player)


def test_register_returns_discount_and_payment(monkeypatch) -> None:
    tournament_id = uuid4()
    payment_id = uuid4()
    captured: dict[str, object] = {}

    async def fake_register_player(session, **kwargs):  # noqa: ARG001
        captured.update(kwargs)
        return RegistrationResult(
            tournament_id=tournament_id,
            payment_id=payment_id,
            invoice_id="INV-20260301-ABCDEF1234",
            payable_amount=Decimal("0.00"),
            base_amount=Decimal("200.00"),
            discount_amount=Decimal("200.00"),
            coupon_code="FREEALL",
            payment_status="success",
            payment_gateway="manual",
            roster_payment_status="paid",
            current_participants=1,
        )

    _patch(monkeypatch, fake_register_player)
    client = TestClient(app, client=("127.0.0.1", 5200))

    response = client.post(
        f"/tournaments/{tournament_id}/register",
        json={"coupon_code": "freeall"},
        headers=_headers(),
    )

    assert response.status_code == 200
    body = response.json()
    assert Decimal(body["payable_amount"]) == Decimal("0")
    assert body["discount"]["coupon_code"] == "FREEALL"
    assert body["payment"]["id"] == str(payment_id)
    assert body["payment"]["status"] == "success"
    assert body["roster_payment_status"] == "paid"
    assert captured["user_id"] == 42
    assert captured["coupon_code"] == "freeall"
    assert captured["currency"] == "INR"
    assert captured["settlement"] == "manual"


def test_register_maps_full_tournament_to_conflict(monkeypatch) -> None:
    async def fake_register_player(session, **kwargs):  # noqa: ARG001
        raise TournamentFullError

    _patch(monkeypatch, fake_register_player)
    client = TestClient(app, client=("127.0.0.1", 5201))

    response = client.post(f"/tournaments/{uuid4()}/register", json={}, headers=_headers())

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["code"] == "E_TOURNAMENT_FULL"
    assert detail["kind"] == "precondition"
    assert detail["message"]


def test_register_maps_duplicate_game_id(monkeypatch) -> None:
    async def fake_register_player(session, **kwargs):  # noqa: ARG001
        raise GameIdAlreadyRegisteredError("Game ID 1234567890 is already registered")

    _patch(monkeypatch, fake_register_player)
    client = TestClient(app, client=("127.0.0.1", 5202))

    response = client.post(f"/tournaments/{uuid4()}/register", json={}, headers=_headers())

    assert response.status_code == 409
    assert response.json()["detail"]["message"] == "Game ID 1234567890 is already registered"


def test_register_requires_caller_identity(monkeypatch) -> None:
    calls: list[object] = []

    async def fake_register_player(session, **kwargs):  # noqa: ARG001
        calls.append(kwargs)

    _patch(monkeypatch, fake_register_player)
    client = TestClient(app, client=("127.0.0.1", 5203))

    response = client.post(
        f"/tournaments/{uuid4()}/register",
        json={},
        headers={"X-Internal-Token": TOKEN},
    )

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_CALLER_REQUIRED"}}
    assert calls == []


def test_register_rejects_unknown_caller_role(monkeypatch) -> None:
    _patch(monkeypatch, None)
    client = TestClient(app, client=("127.0.0.1", 5204))

    response = client.post(
        f"/tournaments/{uuid4()}/register",
        json={},
        headers=_headers(**{"X-Caller-Role": "root"}),
    )

    assert response.status_code == 401
    assert response.json() == {"detail": {"code": "E_CALLER_ROLE_INVALID"}}


def test_register_rejects_missing_token(monkeypatch) -> None:
    _patch(monkeypatch, None)
    client = TestClient(app, client=("127.0.0.1", 5205))

    response = client.post(
        f"/tournaments/{uuid4()}/register",
        json={},
        headers={"X-Caller-Id": "42"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_register_rejects_disallowed_ip(monkeypatch) -> None:
    _patch(monkeypatch, None)
    client = TestClient(app, client=("10.0.0.25", 5206))

    response = client.post(f"/tournaments/{uuid4()}/register", json={}, headers=_headers())

    assert response.status_code == 403
