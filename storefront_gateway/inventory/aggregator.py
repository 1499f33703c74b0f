import logging
import math
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..shared.square_client import SquareClient

logger = logging.getLogger(__name__)

IN_STOCK = "IN_STOCK"


def parse_quantity(raw) -> float:
    """Square sends quantities as decimal strings; anything unparsable counts as zero."""
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return value


def sum_in_stock(counts: Iterable[dict]) -> Tuple[Dict[str, float], Set[str]]:
    """Reduce raw inventory count records to available quantity per variation.

    Returns ``(available, tracked)``. ``available`` only has keys for
    variations with at least one IN_STOCK record; ``tracked`` holds every
    variation that had a record of any state.
    """
    available: Dict[str, float] = {}
    tracked: Set[str] = set()

    for count in counts:
        variation_id = count.get("catalog_object_id")
        if not variation_id:
            continue
        tracked.add(variation_id)
        if count.get("state") != IN_STOCK:
            continue
        available[variation_id] = available.get(variation_id, 0.0) + parse_quantity(count.get("quantity"))

    return available, tracked


class InventoryAggregator:
    """Batched stock lookup against Square inventory."""

    def __init__(self, square: SquareClient, default_location_id: Optional[str] = None):
        self.square = square
        self.default_location_id = default_location_id

    def available_quantities(
        self, variation_ids: List[str], location_id: Optional[str] = None
    ) -> Tuple[Dict[str, float], Set[str]]:
        """
        Look up available stock for all variations with a single batched query.

        All ids go into one query; there is never a call per id. Square pages
        its answer for large sets, so when it returns a ``cursor`` the
        continuation pages of that same query are fetched as well and the
        lookup then takes more than one HTTP call. Stopping at the first page
        would under-report stock for the remaining variations.

        Raises ValueError for an empty id list, SquareAPIError for a non-2xx
        answer.
        """
        ids = list(dict.fromkeys(v for v in variation_ids if v))
        if not ids:
            raise ValueError("variationIds required")

        location = location_id or self.default_location_id
        if not location:
            logger.warning("Inventory: no location configured, counts aggregate across all locations")
        location_ids = [location] if location else None

        counts: List[dict] = []
        cursor = None
        while True:
            page = self.square.batch_retrieve_inventory_counts(ids, location_ids=location_ids, cursor=cursor)
            counts.extend(page.get("counts") or [])
            cursor = page.get("cursor")
            if not cursor:
                break

        available, tracked = sum_in_stock(counts)
        logger.info(f"Inventory lookup for {len(ids)} variations: {len(available)} in stock")
        return available, tracked
