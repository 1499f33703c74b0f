import logging
from typing import Any, Dict, Optional, Union
from uuid import uuid4

import requests
from pydantic import BaseModel, ConfigDict

from ..shared.errors import SquareAPIError
from ..shared.square_client import SquareClient

logger = logging.getLogger(__name__)

# Square rejects idempotency keys longer than this
MAX_IDEMPOTENCY_KEY_LENGTH = 45


class PaymentPaid(BaseModel):
    """Square accepted the charge."""

    model_config = ConfigDict(frozen=True)

    payment_id: str
    status: str
    amount: int
    order_id: str
    payment: Dict[str, Any]


class PaymentFailed(BaseModel):
    """The charge did not go through; ``details`` is Square's answer verbatim."""

    model_config = ConfigDict(frozen=True)

    reason: str
    details: Any
    status_code: int


PaymentResult = Union[PaymentPaid, PaymentFailed]


def build_idempotency_key(order_id: str, supplied: Optional[str] = None) -> str:
    """
    Use the caller's key when given, otherwise generate one scoped to this
    submission. A retried request that reuses the caller's key is deduplicated
    by Square; two distinct submissions never share a generated key.
    """
    if supplied:
        return supplied[:MAX_IDEMPOTENCY_KEY_LENGTH]
    suffix = uuid4().hex[:12]
    prefix = order_id[: MAX_IDEMPOTENCY_KEY_LENGTH - len(suffix) - 1]
    return f"{prefix}-{suffix}"


class PaymentProcessor:
    """Submits card charges for an order through Square Payments."""

    def __init__(self, square: SquareClient, location_id: Optional[str] = None, currency: str = "USD"):
        self.square = square
        self.location_id = location_id
        self.currency = currency

    def build_charge(
        self,
        order_id: str,
        source_id: str,
        amount: int,
        idempotency_key: str,
        buyer_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "source_id": source_id,
            "idempotency_key": idempotency_key,
            "amount_money": {"amount": amount, "currency": self.currency},
            "order_id": order_id,
            "note": f"Order {order_id} - BOPIS (Buy Online, Pickup In Store)",
        }
        if buyer_email:
            body["buyer_email_address"] = buyer_email
        if self.location_id:
            body["location_id"] = self.location_id
        return body

    def submit(
        self,
        order_id: str,
        source_id: str,
        amount: int,
        buyer_email: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> PaymentResult:
        """
        Charge ``amount`` (minor units) against the one-time ``source_id`` token.

        Returns PaymentPaid or PaymentFailed; never raises for vendor or
        transport failures.
        """
        if not source_id:
            raise ValueError("Payment source required")

        key = build_idempotency_key(order_id, idempotency_key)
        body = self.build_charge(order_id, source_id, amount, key, buyer_email)
        log_extra = {"correlation_id": order_id}

        try:
            data = self.square.create_payment(body)
        except SquareAPIError as e:
            logger.info(f"Payment FAILED for order {order_id}: Square returned {e.status_code}", extra=log_extra)
            return PaymentFailed(reason="Payment failed", details=e.errors, status_code=400)
        except requests.RequestException as e:
            logger.error(f"Payment request for order {order_id} failed: {e}", extra=log_extra)
            return PaymentFailed(reason="Payment processing failed", details=str(e), status_code=500)

        payment = data.get("payment")
        if not payment:
            logger.info(f"Payment FAILED for order {order_id}: no payment in response", extra=log_extra)
            return PaymentFailed(reason="Payment failed", details=data.get("errors") or data, status_code=400)

        logger.info(f"Payment SUCCESS for order {order_id}: {payment.get('id')}", extra=log_extra)
        return PaymentPaid(
            payment_id=payment.get("id", ""),
            status=payment.get("status", ""),
            amount=amount,
            order_id=order_id,
            payment=payment,
        )
