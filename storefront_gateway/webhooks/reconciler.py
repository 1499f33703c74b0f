"""
reconciler.py - Payment webhook reconciliation

Square delivers ``payment.updated`` notifications at least once. When the
payment reaches COMPLETED the order's pickup fulfillment is moved to
PREPARED. That update is a state *set*, so a redelivered event ends in the
same final state.

When a Redis client is supplied, event ids are also remembered for a while
(``SET NX EX``) and a redelivery with a known event id is skipped without
touching Square at all. An event id is only remembered after its side effect
succeeded, so a failed attempt can still be completed by the next delivery.
An unreachable Redis only disables the skip; the fulfillment still runs.

Nothing in here decides the HTTP response: the route always acknowledges.
"""

import json
import logging
from typing import Any, Optional

import redis
from pydantic import ValidationError

from ..orders.fulfillment import OrderFulfiller
from ..shared.events import PaymentUpdatedEvent, WebhookEnvelope

logger = logging.getLogger(__name__)

DEDUPE_KEY_PREFIX = "webhook:event:"

# Outcomes, returned for logging and tests
IGNORED = "ignored"
DUPLICATE = "duplicate"
NOT_COMPLETED = "not_completed"
FULFILLED = "fulfilled"
ALREADY_FULFILLED = "already_fulfilled"


def parse_envelope(raw: bytes) -> WebhookEnvelope:
    """Decode a raw webhook body. Raises ValueError on anything malformed."""
    try:
        body: Any = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Webhook body is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise ValueError("Webhook body is not a JSON object")
    try:
        return WebhookEnvelope.model_validate(body)
    except ValidationError as e:
        raise ValueError(f"Webhook body does not match the event envelope: {e}") from e


class WebhookReconciler:
    """Applies payment notifications to order fulfillment."""

    def __init__(
        self,
        fulfiller: OrderFulfiller,
        redis_client: Optional[redis.Redis] = None,
        dedupe_ttl_seconds: int = 24 * 60 * 60,
    ):
        self.fulfiller = fulfiller
        self.redis = redis_client
        self.dedupe_ttl_seconds = dedupe_ttl_seconds

    def _seen(self, event: PaymentUpdatedEvent) -> bool:
        if self.redis is None or not event.event_id:
            return False
        try:
            return bool(self.redis.exists(f"{DEDUPE_KEY_PREFIX}{event.event_id}"))
        except redis.RedisError as e:
            # Treat as unseen; fulfillment is a state set and safe to repeat
            logger.warning(f"Redis dedupe lookup failed for event {event.event_id}: {e}")
            return False

    def _remember(self, event: PaymentUpdatedEvent) -> None:
        if self.redis is None or not event.event_id:
            return
        try:
            self.redis.set(
                f"{DEDUPE_KEY_PREFIX}{event.event_id}",
                event.order_id,
                nx=True,
                ex=self.dedupe_ttl_seconds,
            )
        except redis.RedisError as e:
            logger.warning(f"Could not record event {event.event_id} in Redis: {e}")

    def handle(self, raw: bytes) -> str:
        """
        Process one delivery and return its outcome.

        Raises on malformed bodies and collaborator failures; the caller is
        expected to log and acknowledge regardless.
        """
        envelope = parse_envelope(raw)
        event = envelope.as_payment_update()
        if event is None:
            logger.info(f"Ignoring webhook event type {envelope.type}")
            return IGNORED

        log_extra = event.log_context()
        logger.info(f"Payment updated for order {event.order_id}: {event.status}", extra=log_extra)

        if not event.is_completed:
            return NOT_COMPLETED

        if self._seen(event):
            logger.info(f"Event {event.event_id} already reconciled, skipping", extra=log_extra)
            return DUPLICATE

        changed = self.fulfiller.mark_ready_for_pickup(event.order_id)
        self._remember(event)

        logger.info(f"Payment completed for order {event.order_id}", extra=log_extra)
        return FULFILLED if changed else ALREADY_FULFILLED
