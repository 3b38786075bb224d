from __future__ import annotations

from .builder import _build_invoice_id, _build_payment
from .create import create_registration_payment
from .effects import SUCCESS_HANDLERS, _apply_success_effects, _sync_roster_status
from .lifecycle import close_open_payment, expire_stale_payment
from .manual_review import decide_manual_payment, submit_manual_proof
from .order import create_gateway_order, create_topup
from .refund import complete_refund, fail_refund, refund_payment, reserve_refund
from .verify import verify_gateway_payment
from .wallet_pay import pay_with_wallet


class PaymentService:
    _build_invoice_id = staticmethod(_build_invoice_id)
    _build_payment = staticmethod(_build_payment)
    _apply_success_effects = staticmethod(_apply_success_effects)
    _sync_roster_status = staticmethod(_sync_roster_status)
    create_registration_payment = staticmethod(create_registration_payment)
    create_gateway_order = staticmethod(create_gateway_order)
    create_topup = staticmethod(create_topup)
    verify_gateway_payment = staticmethod(verify_gateway_payment)
    submit_manual_proof = staticmethod(submit_manual_proof)
    decide_manual_payment = staticmethod(decide_manual_payment)
    reserve_refund = staticmethod(reserve_refund)
    complete_refund = staticmethod(complete_refund)
    fail_refund = staticmethod(fail_refund)
    refund_payment = staticmethod(refund_payment)
    pay_with_wallet = staticmethod(pay_with_wallet)
    close_open_payment = staticmethod(close_open_payment)
    expire_stale_payment = staticmethod(expire_stale_payment)


__all__ = [
    "SUCCESS_HANDLERS",
    "PaymentService",
]
