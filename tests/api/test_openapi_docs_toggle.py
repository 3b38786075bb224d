from __future__ import annotations

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app import main as app_main

DOC_PATHS = ("/docs", "/redoc", "/openapi.json")


def _client(monkeypatch, *, enable_openapi_docs: bool) -> TestClient:
    settings = SimpleNamespace(log_level="INFO", app_env="test", enable_openapi_docs=enable_openapi_docs)
    monkeypatch.setattr(app_main, "get_settings", lambda: settings)
    return TestClient(app_main.create_app())


@pytest.mark.parametrize(("enabled", "expected_status"), [(True, 200), (False, 404)])
def test_openapi_docs_follow_setting(monkeypatch, enabled: bool, expected_status: int) -> None:
    client = _client(monkeypatch, enable_openapi_docs=enabled)

    assert [client.get(path).status_code for path in DOC_PATHS] == [expected_status] * 3


def test_openapi_schema_lists_ledger_routes(monkeypatch) -> None:
    client = _client(monkeypatch, enable_openapi_docs=True)

    paths = set(client.get("/openapi.json").json()["paths"])

    assert {
        "/coupons/validate",
        "/tournaments/{tournament_id}/register",
        "/payments/verify",
        "/wallet/withdrawals",
        "/admin/tournaments/{tournament_id}/winners",
    } <= paths
