"""
square_client.py - Thin Square REST client

Wraps the handful of Square v2 endpoints the gateway proxies to. Every method
performs exactly one HTTP call, returns the decoded JSON body on success, and
raises ``SquareAPIError`` (carrying Square's error list verbatim) on any
non-2xx status. Transport failures surface as ``requests.RequestException``.

No retries happen here; retry policy belongs to the caller or to Square.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .errors import ConfigurationError, SquareAPIError

logger = logging.getLogger(__name__)


class SquareClient:
    """Square API client bound to one access token."""

    def __init__(
        self,
        access_token: str,
        base_url: str,
        api_version: str = "2024-12-18",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        if not access_token:
            raise ConfigurationError("SQUARE_ACCESS_TOKEN environment variable is required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
                "Square-Version": api_version,
            }
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SquareClient":
        return cls(
            access_token=settings.square_access_token,
            base_url=settings.square_base_url,
            api_version=settings.square_api_version,
            timeout=settings.http_timeout_seconds,
        )

    def close(self) -> None:
        self.session.close()

    def _request(self, method: str, path: str, json_body: Optional[dict] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        response = self.session.request(method, url, json=json_body, timeout=self.timeout)

        try:
            payload = response.json()
        except ValueError:
            payload = {"raw": response.text}

        if not response.ok:
            errors = (payload.get("errors") or payload) if isinstance(payload, dict) else payload
            logger.warning(f"Square {method} {path} returned {response.status_code}")
            raise SquareAPIError(response.status_code, errors)

        return payload

    # Inventory

    def batch_retrieve_inventory_counts(
        self,
        catalog_object_ids: List[str],
        location_ids: Optional[List[str]] = None,
        cursor: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {"catalog_object_ids": catalog_object_ids}
        if location_ids:
            body["location_ids"] = location_ids
        if cursor:
            body["cursor"] = cursor
        return self._request("POST", "/v2/inventory/batch-retrieve-counts", body)

    # Payments

    def create_payment(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/v2/payments", body)

    # Orders

    def create_order(self, order: Dict[str, Any], idempotency_key: str) -> Dict[str, Any]:
        return self._request("POST", "/v2/orders", {"order": order, "idempotency_key": idempotency_key})

    def retrieve_order(self, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v2/orders/{order_id}")

    def update_order(self, order_id: str, order: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", f"/v2/orders/{order_id}", {"order": order})

    def search_orders(self, location_ids: List[str], limit: int = 50) -> Dict[str, Any]:
        body = {
            "location_ids": location_ids,
            "limit": limit,
            "query": {"sort": {"sort_field": "CREATED_AT", "sort_order": "DESC"}},
        }
        return self._request("POST", "/v2/orders/search", body)
