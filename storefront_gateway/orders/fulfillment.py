"""
fulfillment.py - Pickup fulfillment state changes on Square orders

Orders are BOPIS (buy online, pickup in store) with a single PICKUP
fulfillment. Every state change here *sets* the fulfillment state on the
order's current version, so applying the same change twice leaves the order
exactly as applying it once.

STATES:
    PROPOSED  -> order created, not yet paid
    RESERVED  -> staff acknowledged the order
    PREPARED  -> ready for pickup (set automatically when payment completes)
    COMPLETED -> picked up
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import requests

from ..shared.errors import SquareAPIError
from ..shared.square_client import SquareClient

logger = logging.getLogger(__name__)

PROPOSED = "PROPOSED"
RESERVED = "RESERVED"
PREPARED = "PREPARED"
COMPLETED = "COMPLETED"

STAFF_SETTABLE_STATES = (PREPARED, COMPLETED, RESERVED)
READY_OR_DONE = (PREPARED, COMPLETED)
CLOSED_ORDER_STATES = ("COMPLETED", "CLOSED")

# Square order search has no email filter; this many recent orders are
# fetched and filtered locally
EMAIL_SEARCH_WINDOW = 100


class OrderNotFoundError(LookupError):
    pass


class FulfillmentError(ValueError):
    """The order exists but its fulfillment cannot be updated."""


def first_fulfillment(order: Dict[str, Any]) -> Dict[str, Any]:
    fulfillments = order.get("fulfillments") or []
    if not fulfillments:
        raise FulfillmentError("Order has no fulfillments")
    fulfillment = fulfillments[0]
    if not fulfillment.get("uid") or not fulfillment.get("type"):
        raise FulfillmentError("Order fulfillment is missing required fields")
    return fulfillment


def is_paid(order: Dict[str, Any]) -> bool:
    return bool(order.get("tenders"))


def recipient_email(order: Dict[str, Any]) -> str:
    fulfillment = (order.get("fulfillments") or [{}])[0]
    recipient = (fulfillment.get("pickup_details") or {}).get("recipient") or {}
    return (recipient.get("email_address") or "").lower()


def orders_for_email(
    orders: Iterable[Dict[str, Any]], email: str, include_closed: bool = False
) -> List[Dict[str, Any]]:
    """
    Orders picked up by ``email`` (case-insensitive) that have been paid.

    With ``include_closed``, orders Square reports as COMPLETED or CLOSED
    count as well, even without tenders.
    """
    wanted = email.strip().lower()
    if not wanted:
        return []
    return [
        order
        for order in orders
        if recipient_email(order) == wanted
        and (is_paid(order) or (include_closed and order.get("state") in CLOSED_ORDER_STATES))
    ]


def merge_staff_note(existing: Optional[str], notes: Optional[str]) -> str:
    existing = existing or ""
    if not notes or not notes.strip():
        return existing
    if existing:
        return f"{existing} | Staff note: {notes}"
    return f"Staff note: {notes}"


class OrderFulfiller:
    """Reads and updates the pickup fulfillment of Square orders."""

    def __init__(self, square: SquareClient):
        self.square = square

    def get_order(self, order_id: str) -> Dict[str, Any]:
        try:
            data = self.square.retrieve_order(order_id)
        except SquareAPIError as e:
            if e.status_code == 404:
                raise OrderNotFoundError(order_id) from e
            raise
        order = data.get("order")
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def set_state(self, order_id: str, state: str, notes: Optional[str] = None) -> Dict[str, Any]:
        """Set the first fulfillment of ``order_id`` to ``state`` and return the updated order."""
        order = self.get_order(order_id)
        fulfillment = first_fulfillment(order)

        pickup_details = dict(fulfillment.get("pickup_details") or {})
        if notes:
            pickup_details["note"] = merge_staff_note(pickup_details.get("note"), notes)

        update: Dict[str, Any] = {
            "uid": fulfillment["uid"],
            "type": fulfillment["type"],
            "state": state,
        }
        if pickup_details:
            update["pickup_details"] = pickup_details

        data = self.square.update_order(
            order_id,
            {"version": order.get("version"), "fulfillments": [update]},
        )
        updated = data.get("order")
        if not updated:
            raise SquareAPIError(502, data.get("errors") or data, "Square returned no order")

        logger.info(f"Order {order_id} fulfillment set to {state}", extra={"correlation_id": order_id})
        return updated

    def mark_ready_for_pickup(self, order_id: str) -> bool:
        """
        Move a paid order to PREPARED.

        Returns False without writing when the order is already PREPARED or
        COMPLETED, so redelivered payment notifications are harmless.
        """
        order = self.get_order(order_id)
        current = first_fulfillment(order).get("state")
        if current in READY_OR_DONE:
            logger.info(
                f"Order {order_id} already {current}, nothing to do",
                extra={"correlation_id": order_id},
            )
            return False
        self.set_state(order_id, PREPARED)
        return True

    def promote_paid_orders(self, location_id: str, limit: int = 50) -> Dict[str, int]:
        """Move recent paid orders still in PROPOSED to PREPARED."""
        data = self.square.search_orders([location_id], limit=limit)
        candidates = [
            order
            for order in data.get("orders") or []
            if is_paid(order) and ((order.get("fulfillments") or [{}])[0].get("state") == PROPOSED)
        ]

        updated = 0
        for order in candidates:
            try:
                self.set_state(order["id"], PREPARED)
                updated += 1
            except (SquareAPIError, OrderNotFoundError, FulfillmentError, requests.RequestException) as e:
                logger.error(f"Failed to update order {order.get('id')}: {e}")

        return {"updated_count": updated, "total_found": len(candidates)}
