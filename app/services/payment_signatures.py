from __future__ import annotations

import hashlib
import hmac


def compute_payment_signature(*, order_id: str, payment_id: str, secret: str) -> str:
    digest = hmac.new(
        secret.encode("utf-8"),
        f"{order_id}|{payment_id}".encode("utf-8"),
        hashlib.sha256,
    )
    return digest.hexdigest()


def is_valid_payment_signature(
    *,
    order_id: str,
    payment_id: str,
    signature: str | None,
    secret: str,
) -> bool:
    if not secret or not signature or not order_id or not payment_id:
        return False
    expected = compute_payment_signature(order_id=order_id, payment_id=payment_id, secret=secret)
    return hmac.compare_digest(expected, signature.strip().lower())
