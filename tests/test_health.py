from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.routes import health as health_routes
from app.main import app


async def _ok_check() -> dict[str, str]:
    return {"status": "ok"}


def _patch_checks(monkeypatch, **overrides) -> None:
    checks = {
        "_check_database": _ok_check,
        "_check_redis": _ok_check,
        "_check_celery_worker": _ok_check,
        "_check_payment_gateway": _ok_check,
    }
    checks.update(overrides)
    for name, check in checks.items():
        monkeypatch.setattr(health_routes, name, check)


def test_health_ok(monkeypatch) -> None:
    _patch_checks(monkeypatch)

    response = TestClient(app).get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ok",
        "checks": {
            "database": {"status": "ok"},
            "redis": {"status": "ok"},
            "celery": {"status": "ok"},
            "payment_gateway": {"status": "ok"},
        },
    }


def test_live_ok() -> None:
    response = TestClient(app).get("/live")
    assert response.status_code == 200
    assert response.json() == {"status": "live"}


def test_health_returns_503_when_dependency_failed(monkeypatch) -> None:
    async def _failed_redis() -> dict[str, str]:
        return {"status": "failed", "error": "redis_unavailable"}

    _patch_checks(monkeypatch, _check_redis=_failed_redis)

    response = TestClient(app).get("/health")

    assert response.status_code == 503
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["checks"]["redis"] == {"status": "failed", "error": "redis_unavailable"}


def test_ready_ignores_celery_and_gateway(monkeypatch) -> None:
    async def _failed() -> dict[str, str]:
        return {"status": "failed", "error": "down"}

    _patch_checks(monkeypatch, _check_celery_worker=_failed, _check_payment_gateway=_failed)

    response = TestClient(app).get("/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "ready",
        "checks": {"database": {"status": "ok"}, "redis": {"status": "ok"}},
    }


@pytest.mark.asyncio
async def test_payment_gateway_check_reports_configuration(monkeypatch) -> None:
    monkeypatch.setattr(
        health_routes,
        "get_payment_gateway",
        lambda: SimpleNamespace(is_configured=False),
    )

    assert await health_routes._check_payment_gateway() == {"status": "ok", "configured": False}


@pytest.mark.asyncio
async def test_database_check_reports_latest_reconciliation_runs(monkeypatch) -> None:
    class _Session:
        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

        async def execute(self, statement):  # noqa: ARG002
            return None

    async def fake_get_latest(session, *, kind: str):  # noqa: ARG001
        return SimpleNamespace(status="DIFF") if kind == "wallet_ledger" else None

    monkeypatch.setattr(health_routes, "SessionLocal", lambda: _Session())
    monkeypatch.setattr(health_routes.ReconciliationRunsRepo, "get_latest", fake_get_latest)

    result = await health_routes._check_database()

    assert result == {"status": "ok", "reconciliation": {"roster": None, "wallet_ledger": "DIFF"}}


@pytest.mark.asyncio
async def test_database_check_sanitizes_exception(monkeypatch) -> None:
    class _BrokenSession:
        async def __aenter__(self):
            raise RuntimeError("password=secret")

        async def __aexit__(self, exc_type, exc, tb) -> bool:
            return False

    monkeypatch.setattr(health_routes, "SessionLocal", lambda: _BrokenSession())

    result = await health_routes._check_database()
    assert result == {"status": "failed", "error": "database_unavailable"}


def test_celery_check_sanitizes_exception(monkeypatch) -> None:
    class _BrokenControl:
        def inspect(self, timeout: float):
            raise RuntimeError("broker-url=redis://secret")

    monkeypatch.setattr(health_routes.celery_app, "control", _BrokenControl())

    result = health_routes._check_celery_worker_sync()
    assert result == {"status": "failed", "error": "celery_unavailable"}
