import logging
from typing import Any, Dict, List
from uuid import uuid4

import requests
from fastapi import APIRouter, Depends, Query, status

from ..shared.dependencies import get_settings, get_square_client
from ..shared.errors import SquareAPIError, error_response
from .fulfillment import (
    EMAIL_SEARCH_WINDOW,
    PROPOSED,
    OrderFulfiller,
    OrderNotFoundError,
    orders_for_email,
)
from .schemas import CartItem, CreateOrderRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/orders", tags=["orders"])

PICKUP_NOTE = "Please bring a valid ID for pickup verification."


def build_line_items(items: List[CartItem]) -> List[Dict[str, Any]]:
    return [
        {
            "name": item.book.name,
            "quantity": str(item.quantity),
            "base_price_money": {
                "amount": int(round(item.book.price * 100)),
                "currency": item.book.currency,
            },
        }
        for item in items
    ]


def build_pickup_order(body: CreateOrderRequest, location_id: str) -> Dict[str, Any]:
    customer = body.customer_info
    recipient = {
        "display_name": customer.name or "Customer",
        "email_address": customer.email,
    }
    if customer.phone:
        recipient["phone_number"] = customer.phone

    order: Dict[str, Any] = {
        "location_id": location_id,
        "line_items": build_line_items(body.items),
        "fulfillments": [
            {
                "type": "PICKUP",
                "state": PROPOSED,
                "pickup_details": {"recipient": recipient, "note": PICKUP_NOTE},
            }
        ],
        "metadata": {"source": "website"},
    }
    if customer.user_id:
        order["metadata"]["customerId"] = customer.user_id
    return order


@router.post("/create")
def create_order(
    body: CreateOrderRequest,
    settings=Depends(get_settings),
    square=Depends(get_square_client),
):
    """Create a pickup order in Square from the client's cart."""
    if not body.items:
        return error_response("No items in cart", status.HTTP_400_BAD_REQUEST)
    if not body.customer_info or not body.customer_info.email:
        return error_response("Customer information required", status.HTTP_400_BAD_REQUEST)

    order = build_pickup_order(body, body.location_id or settings.square_location_id)

    try:
        data = square.create_order(order, idempotency_key=str(uuid4()))
    except SquareAPIError as e:
        return error_response("Failed to create order", status.HTTP_400_BAD_REQUEST, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error creating order: {e}")
        return error_response("Internal server error", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e))

    created = data.get("order")
    if not created:
        return error_response("Failed to create order", status.HTTP_400_BAD_REQUEST, details=data)

    logger.info(f"Created order {created.get('id')}", extra={"correlation_id": created.get("id")})
    return {"success": True, "order": created, "orderId": created.get("id")}


@router.get("/{order_id}")
def get_order(order_id: str, square=Depends(get_square_client)):
    """Get order details."""
    try:
        order = OrderFulfiller(square).get_order(order_id)
    except OrderNotFoundError:
        return error_response("Order not found", status.HTTP_404_NOT_FOUND)
    except SquareAPIError as e:
        return error_response("Order not found", status.HTTP_404_NOT_FOUND, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error retrieving order {order_id}: {e}")
        return error_response("Failed to retrieve order", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e))

    return {"success": True, "order": order}


@router.get("/customer/{customer_email}")
def customer_orders(
    customer_email: str,
    limit: int = Query(default=50, ge=1),
    settings=Depends(get_settings),
    square=Depends(get_square_client),
):
    """Paid orders for one customer, newest first, for the account page."""
    try:
        data = square.search_orders([settings.square_location_id], limit=EMAIL_SEARCH_WINDOW)
    except SquareAPIError as e:
        return error_response("Failed to retrieve customer orders", status.HTTP_400_BAD_REQUEST, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error retrieving customer orders: {e}")
        return error_response(
            "Failed to retrieve customer orders", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e)
        )

    orders = orders_for_email(data.get("orders") or [], customer_email)
    return {"success": True, "orders": orders[:limit], "cursor": data.get("cursor")}
