import logging

import requests
from fastapi import APIRouter, Depends, status

from ..shared.dependencies import get_settings, get_square_client
from ..shared.errors import SquareAPIError, error_response
from .aggregator import InventoryAggregator
from .schemas import InventoryBatchRequest, InventoryBatchResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/square/inventory", tags=["inventory"])


@router.post("/batch", response_model=InventoryBatchResponse)
def inventory_batch(
    body: InventoryBatchRequest,
    square=Depends(get_square_client),
    settings=Depends(get_settings),
):
    """Sum IN_STOCK counts per variation with one batched Square query."""
    if not body.variation_ids:
        return error_response("variationIds required", status.HTTP_400_BAD_REQUEST)

    aggregator = InventoryAggregator(square, default_location_id=settings.square_location_id)

    try:
        available, tracked = aggregator.available_quantities(body.variation_ids, body.location_id)
    except ValueError as e:
        return error_response(str(e), status.HTTP_400_BAD_REQUEST)
    except SquareAPIError as e:
        return error_response("Square inventory error", e.status_code, details=e.errors)
    except requests.RequestException as e:
        logger.error(f"Inventory lookup failed: {e}")
        return error_response(
            "Failed to retrieve inventory",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=str(e),
        )

    return InventoryBatchResponse(
        available=available,
        tracked={variation_id: True for variation_id in sorted(tracked)},
    )
