from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from app.core.config import get_settings

logger = structlog.get_logger(__name__)
DEFAULT_PAGERDUTY_EVENTS_URL = "https://events.pagerduty.com/v2/enqueue"
SEVERITY_COLOR = {
    "critical": "#B42318",
    "error": "#F04438",
    "warning": "#F79009",
    "info": "#1570EF",
}


@dataclass(frozen=True)
class AlertRoute:
    channels: tuple[str, ...]
    severity: str
    escalation_tier: str


@dataclass(frozen=True)
class AlertTarget:
    channel: str
    url: str


DEFAULT_ALERT_ROUTE = AlertRoute(
    channels=("generic",),
    severity="warning",
    escalation_tier="ops_l3",
)
EVENT_ALERT_ROUTES = {
    "wallet_ledger_drift_detected": AlertRoute(
        channels=("pagerduty", "slack", "generic"),
        severity="critical",
        escalation_tier="ops_l1",
    ),
    "roster_payment_status_diff_detected": AlertRoute(
        channels=("slack", "generic"),
        severity="error",
        escalation_tier="ops_l2",
    ),
    "stale_payment_orders_expired": AlertRoute(
        channels=("slack", "generic"),
        severity="info",
        escalation_tier="ops_l3",
    ),
    "payment_captured_after_close": AlertRoute(
        channels=("slack", "generic"),
        severity="error",
        escalation_tier="ops_l2",
    ),
    "winner_settlement_failed": AlertRoute(
        channels=("slack", "generic"),
        severity="error",
        escalation_tier="ops_l2",
    ),
}


def _setting_str(settings: object, attr: str) -> str:
    value = getattr(settings, attr, "")
    return value.strip() if isinstance(value, str) else ""


def resolve_targets(*, route: AlertRoute, settings: object) -> list[AlertTarget]:
    generic_webhook_url = _setting_str(settings, "ops_alert_webhook_url")
    channel_to_url: dict[str, str] = {
        "generic": generic_webhook_url,
        "slack": _setting_str(settings, "ops_alert_slack_webhook_url"),
    }
    if _setting_str(settings, "ops_alert_pagerduty_routing_key"):
        channel_to_url["pagerduty"] = (
            _setting_str(settings, "ops_alert_pagerduty_events_url") or DEFAULT_PAGERDUTY_EVENTS_URL
        )

    targets = [
        AlertTarget(channel=channel, url=channel_to_url[channel])
        for channel in route.channels
        if channel_to_url.get(channel)
    ]
    if not targets and generic_webhook_url:
        targets.append(AlertTarget(channel="generic", url=generic_webhook_url))
    return targets


def build_channel_payload(
    *,
    channel: str,
    event: str,
    payload: dict[str, object],
    sent_at: datetime,
    route: AlertRoute,
    app_env: str,
    pagerduty_routing_key: str,
) -> dict[str, Any]:
    if channel == "generic":
        return {
            "event": event,
            "payload": payload,
            "sent_at": sent_at.isoformat(),
            "severity": route.severity,
            "escalation_tier": route.escalation_tier,
        }
    if channel == "slack":
        payload_text = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
        return {
            "text": f"[{route.severity.upper()}][{route.escalation_tier}] {event}",
            "attachments": [
                {
                    "color": SEVERITY_COLOR.get(route.severity, SEVERITY_COLOR["warning"]),
                    "fields": [
                        {"title": "Environment", "value": app_env, "short": True},
                        {"title": "Sent At", "value": sent_at.isoformat(), "short": True},
                        {"title": "Event", "value": event, "short": False},
                        {"title": "Payload", "value": payload_text, "short": False},
                    ],
                }
            ],
        }
    if channel == "pagerduty":
        return {
            "routing_key": pagerduty_routing_key,
            "event_action": "trigger",
            "dedup_key": f"{event}:{route.escalation_tier}",
            "payload": {
                "summary": f"[{app_env}] {event}",
                "source": f"tournament-ledger/{app_env}",
                "severity": route.severity,
                "timestamp": sent_at.isoformat(),
                "component": "tournament-ledger-api",
                "group": route.escalation_tier,
                "custom_details": {"event": event, "payload": payload},
            },
        }
    raise ValueError(f"Unsupported alert channel: {channel}")


async def _post_json(
    *,
    client: httpx.AsyncClient,
    url: str,
    body: dict[str, Any],
    event: str,
    channel: str,
) -> bool:
    try:
        response = await client.post(url, json=body)
        response.raise_for_status()
        return True
    except Exception:
        logger.exception("ops_alert_delivery_failed", alert_event=event, provider=channel)
        return False


async def send_ops_alert(*, event: str, payload: dict[str, object]) -> bool:
    settings = get_settings()
    route = EVENT_ALERT_ROUTES.get(event, DEFAULT_ALERT_ROUTE)
    targets = resolve_targets(route=route, settings=settings)
    if not targets:
        return False

    sent_at = datetime.now(timezone.utc)
    app_env = _setting_str(settings, "app_env") or "dev"
    pagerduty_routing_key = _setting_str(settings, "ops_alert_pagerduty_routing_key")

    delivered_to: list[str] = []
    failed_to: list[str] = []
    async with httpx.AsyncClient(timeout=5.0) as client:
        for target in targets:
            body = build_channel_payload(
                channel=target.channel,
                event=event,
                payload=payload,
                sent_at=sent_at,
                route=route,
                app_env=app_env,
                pagerduty_routing_key=pagerduty_routing_key,
            )
            delivered = await _post_json(
                client=client,
                url=target.url,
                body=body,
                event=event,
                channel=target.channel,
            )
            (delivered_to if delivered else failed_to).append(target.channel)

    if not delivered_to:
        logger.error(
            "ops_alert_delivery_exhausted",
            alert_event=event,
            severity=route.severity,
            failed_to=failed_to,
        )
        return False

    logger.info(
        "ops_alert_delivered",
        alert_event=event,
        severity=route.severity,
        delivered_to=delivered_to,
        failed_to=failed_to,
    )
    return True
