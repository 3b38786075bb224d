from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import structlog
from fastapi import HTTPException, Request

from app.core.logging import bind_request_context
from app.services.internal_auth import (
    extract_client_ip,
    is_client_ip_allowed,
    is_internal_request_authenticated,
)

logger = structlog.get_logger(__name__)

CALLER_ROLES = frozenset({"user", "admin", "super_admin"})
ADMIN_ROLES = frozenset({"admin", "super_admin"})


@dataclass(frozen=True, slots=True)
class Caller:
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def _assert_internal_access(request: Request, *, settings: Any) -> None:
    client_ip = extract_client_ip(
        request,
        trusted_proxies=getattr(settings, "internal_api_trusted_proxies", ""),
    )
    if not is_client_ip_allowed(client_ip=client_ip, allowlist=settings.internal_api_allowlist):
        logger.warning("internal_api_auth_failed", reason="ip_not_allowed", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})

    if not is_internal_request_authenticated(request, expected_token=settings.internal_api_token):
        logger.warning("internal_api_auth_failed", reason="invalid_credentials", client_ip=client_ip)
        raise HTTPException(status_code=403, detail={"code": "E_FORBIDDEN"})


def resolve_caller(request: Request, *, settings: Any) -> Caller:
    _assert_internal_access(request, settings=settings)

    raw_user_id = (request.headers.get("X-Caller-Id") or "").strip()
    if not raw_user_id.isdigit() or int(raw_user_id) <= 0:
        raise HTTPException(status_code=401, detail={"code": "E_CALLER_REQUIRED"})
    role = (request.headers.get("X-Caller-Role") or "user").strip().lower()
    if role not in CALLER_ROLES:
        raise HTTPException(status_code=401, detail={"code": "E_CALLER_ROLE_INVALID"})

    caller = Caller(user_id=int(raw_user_id), role=role)
    bind_request_context(
        caller_id=caller.user_id,
        caller_role=caller.role,
        path=request.url.path,
    )
    return caller


def resolve_admin(request: Request, *, settings: Any) -> Caller:
    caller = resolve_caller(request, settings=settings)
    if not caller.is_admin:
        logger.warning("admin_access_denied", caller_id=caller.user_id, caller_role=caller.role)
        raise HTTPException(status_code=403, detail={"code": "E_ADMIN_REQUIRED"})
    return caller
