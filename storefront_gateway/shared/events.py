"""
events.py - Square Webhook Event Schemas

PURPOSE:
    Pydantic models for the asynchronous notifications Square delivers to the
    gateway. Only ``payment.updated`` is acted upon; every other event type is
    parsed into ``WebhookEnvelope`` and ignored.

ENVELOPE (vendor defined):
    {
        "merchant_id": "...",
        "type": "payment.updated",
        "event_id": "0d1f0c3e-...",
        "created_at": "2026-02-23T22:48:51Z",
        "data": {
            "type": "payment",
            "id": "...",
            "object": {"payment": {"id": "...", "order_id": "...", "status": "COMPLETED"}}
        }
    }

USAGE:
    envelope = WebhookEnvelope.model_validate(body)
    event = envelope.as_payment_update()   # None for other types
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

PAYMENT_UPDATED = "payment.updated"
PAYMENT_COMPLETED = "COMPLETED"


class WebhookPayment(BaseModel):
    """The ``payment`` object embedded in a payment event."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    order_id: Optional[str] = None
    status: Optional[str] = None


class WebhookObject(BaseModel):
    model_config = ConfigDict(extra="allow")

    payment: Optional[WebhookPayment] = None


class WebhookData(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    id: Optional[str] = None
    object: WebhookObject = Field(default_factory=WebhookObject)


class WebhookEnvelope(BaseModel):
    """Top-level notification body."""

    model_config = ConfigDict(extra="allow")

    type: str
    event_id: Optional[str] = None
    merchant_id: Optional[str] = None
    created_at: Optional[str] = None
    data: WebhookData = Field(default_factory=WebhookData)

    def as_payment_update(self) -> Optional["PaymentUpdatedEvent"]:
        """Return the payment update carried by this envelope, if any.

        Raises ValueError when the type is ``payment.updated`` but the payment
        object or its order id is missing.
        """
        if self.type != PAYMENT_UPDATED:
            return None
        payment = self.data.object.payment
        if payment is None or not payment.order_id:
            raise ValueError("payment.updated event without payment.order_id")
        return PaymentUpdatedEvent(
            event_id=self.event_id,
            order_id=payment.order_id,
            payment_id=payment.id,
            status=(payment.status or "").upper(),
        )


class PaymentUpdatedEvent(BaseModel):
    """Normalized payment status change for one order."""

    model_config = ConfigDict(frozen=True)

    event_type: str = PAYMENT_UPDATED
    event_id: Optional[str] = None
    order_id: str
    payment_id: Optional[str] = None
    status: str

    @property
    def is_completed(self) -> bool:
        return self.status == PAYMENT_COMPLETED

    def log_context(self) -> Dict[str, Any]:
        """``extra=`` mapping for structured logs."""
        return {"correlation_id": self.event_id or self.order_id, "event_type": self.event_type}
