import logging

import requests
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from pydantic import ValidationError

from ..orders.fulfillment import (
    COMPLETED,
    EMAIL_SEARCH_WINDOW,
    PREPARED,
    STAFF_SETTABLE_STATES,
    FulfillmentError,
    OrderFulfiller,
    OrderNotFoundError,
    orders_for_email,
)
from ..orders.schemas import PickupStatusRequest
from ..shared.dependencies import get_settings, get_square_client
from ..shared.errors import SquareAPIError, error_response
from .auth import require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/orders/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)

STATUS_MESSAGES = {
    COMPLETED: "Order marked as picked up",
    PREPARED: "Order marked as ready for pickup",
}


@router.get("/recent-orders")
def recent_orders(settings=Depends(get_settings), square=Depends(get_square_client)):
    """Most recent orders at the store location, newest first."""
    try:
        data = square.search_orders([settings.square_location_id], limit=50)
    except SquareAPIError as e:
        return error_response("Failed to fetch recent orders", status.HTTP_400_BAD_REQUEST, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error fetching recent orders: {e}")
        return error_response(
            "Failed to fetch recent orders", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e)
        )

    orders = [
        {**order, "line_items": order.get("line_items") or [], "fulfillments": order.get("fulfillments") or []}
        for order in data.get("orders") or []
    ]
    return {"orders": orders}


@router.put("/{order_id}/pickup-status")
async def update_pickup_status(order_id: str, request: Request, square=Depends(get_square_client)):
    """Mark an order processed, ready for pickup, or picked up."""
    # Read the body here rather than as a parameter so the admin gate runs first
    try:
        body = PickupStatusRequest.model_validate(await request.json())
    except ValidationError as e:
        return error_response(
            "Invalid request body",
            status.HTTP_400_BAD_REQUEST,
            details=jsonable_encoder(e.errors(include_url=False)),
        )
    except ValueError as e:
        return error_response("Invalid request body", status.HTTP_400_BAD_REQUEST, details=str(e))

    if body.status not in STAFF_SETTABLE_STATES:
        return error_response("Invalid or missing status", status.HTTP_400_BAD_REQUEST)

    return await run_in_threadpool(apply_pickup_status, square, order_id, body)


def apply_pickup_status(square, order_id: str, body: PickupStatusRequest):
    try:
        order = OrderFulfiller(square).set_state(order_id, body.status, notes=body.notes)
    except OrderNotFoundError:
        return error_response("Order not found", status.HTTP_404_NOT_FOUND)
    except FulfillmentError as e:
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)
    except SquareAPIError as e:
        return error_response("Failed to update pickup status", status.HTTP_400_BAD_REQUEST, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error updating pickup status for {order_id}: {e}")
        return error_response(
            "Failed to update pickup status", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e)
        )

    return {
        "success": True,
        "order": order,
        "message": STATUS_MESSAGES.get(body.status, "Order marked as processed"),
        "updated_status": body.status,
    }


@router.post("/update-paid-orders-status")
def update_paid_orders_status(settings=Depends(get_settings), square=Depends(get_square_client)):
    """Move paid orders still waiting in PROPOSED to PREPARED."""
    try:
        counts = OrderFulfiller(square).promote_paid_orders(settings.square_location_id)
    except SquareAPIError as e:
        return error_response("Failed to search orders", status.HTTP_400_BAD_REQUEST, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error updating paid orders status: {e}")
        return error_response(
            "Failed to update paid orders status", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e)
        )

    return {
        "success": True,
        "message": (
            f"Updated {counts['updated_count']} out of {counts['total_found']} "
            f"paid orders to PREPARED status"
        ),
        **counts,
    }


@router.get("/search-by-email/{email}")
def search_by_email(
    email: str,
    limit: int = Query(default=20, ge=1),
    settings=Depends(get_settings),
    square=Depends(get_square_client),
):
    """Staff lookup of a customer's paid or closed orders."""
    try:
        data = square.search_orders([settings.square_location_id], limit=EMAIL_SEARCH_WINDOW)
    except SquareAPIError as e:
        return error_response("Failed to search orders", status.HTTP_400_BAD_REQUEST, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Error searching orders by email: {e}")
        return error_response(
            "Failed to search orders by email", status.HTTP_500_INTERNAL_SERVER_ERROR, details=str(e)
        )

    orders = orders_for_email(data.get("orders") or [], email, include_closed=True)
    return {
        "success": True,
        "email": email,
        "orders": orders[:limit],
        "total_found": len(orders),
        "showing_paid_only": True,
    }
