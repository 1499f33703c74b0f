"""Pytest fixtures: in-memory stand-ins for Square, Pinecone and Redis."""

import copy

import pytest
from fastapi.testclient import TestClient

from storefront_gateway.main import create_app
from storefront_gateway.search.gateway import SearchGateway
from storefront_gateway.shared.config import Settings
from storefront_gateway.shared.errors import SquareAPIError

ADMIN_PASSWORD = "correct-horse"


class FakeSquare:
    """Records every call; answers from canned data."""

    def __init__(self):
        self.calls = []
        self.inventory_pages = [{"counts": []}]
        self.payment_response = {"payment": {"id": "PAY-1", "status": "COMPLETED"}}
        self.orders = {}
        self.orders_cursor = None
        self.error = None

    def _record(self, name, *args):
        self.calls.append((name,) + args)
        if self.error is not None:
            raise self.error

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def batch_retrieve_inventory_counts(self, catalog_object_ids, location_ids=None, cursor=None):
        self._record("batch_retrieve_inventory_counts", list(catalog_object_ids), location_ids, cursor)
        if len(self.inventory_pages) > 1:
            return self.inventory_pages.pop(0)
        return self.inventory_pages[0]

    def create_payment(self, body):
        self._record("create_payment", body)
        return self.payment_response

    def create_order(self, order, idempotency_key):
        self._record("create_order", order, idempotency_key)
        created = {**copy.deepcopy(order), "id": "ORDER-NEW", "version": 1}
        self.orders[created["id"]] = created
        return {"order": created}

    def retrieve_order(self, order_id):
        self._record("retrieve_order", order_id)
        if order_id not in self.orders:
            raise SquareAPIError(404, [{"code": "NOT_FOUND", "detail": f"Order {order_id} not found"}])
        return {"order": copy.deepcopy(self.orders[order_id])}

    def update_order(self, order_id, order):
        self._record("update_order", order_id, copy.deepcopy(order))
        current = self.orders[order_id]
        if order.get("version") != current.get("version"):
            raise SquareAPIError(409, [{"code": "VERSION_MISMATCH"}])
        fulfillment = current["fulfillments"][0]
        for update in order["fulfillments"]:
            fulfillment.update(update)
        current["version"] += 1
        return {"order": copy.deepcopy(current)}

    def search_orders(self, location_ids, limit=50):
        self._record("search_orders", location_ids, limit)
        data = {"orders": [copy.deepcopy(o) for o in self.orders.values()]}
        if self.orders_cursor:
            data["cursor"] = self.orders_cursor
        return data

    def add_order(self, order_id, state="PROPOSED", paid=False, note="Please bring a valid ID", email=None):
        pickup_details = {"note": note}
        if email:
            pickup_details["recipient"] = {"display_name": "Reader", "email_address": email}
        self.orders[order_id] = {
            "id": order_id,
            "state": "OPEN",
            "version": 3,
            "line_items": [{"name": "Beloved", "quantity": "1"}],
            "fulfillments": [
                {
                    "uid": f"F-{order_id}",
                    "type": "PICKUP",
                    "state": state,
                    "pickup_details": pickup_details,
                }
            ],
            "tenders": [{"id": "T-1"}] if paid else [],
        }
        return self.orders[order_id]


class FakeIndex:
    """Pinecone index stand-in returning SDK-shaped dicts."""

    def __init__(self, hits=None, stats=None, error=None):
        self.hits = hits or []
        self.stats = stats or {"dimension": 1024, "total_vector_count": 42, "namespaces": {"books": {"vector_count": 42}}}
        self.error = error
        self.searches = []

    def search(self, namespace, query, fields):
        self.searches.append({"namespace": namespace, "query": query, "fields": fields})
        if self.error is not None:
            raise self.error
        return {"result": {"hits": self.hits}, "usage": {"read_units": 1}}

    def describe_index_stats(self):
        if self.error is not None:
            raise self.error
        return self.stats


class FakeRedis:
    def __init__(self):
        self.store = {}

    def exists(self, key):
        return int(key in self.store)

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        square_access_token="sq-test-token",
        square_location_id="LOC-1",
        pinecone_api_key="pc-test-key",
        pinecone_index_name="books-index",
        pinecone_index_host="books-index.svc.pinecone.io",
        admin_password=ADMIN_PASSWORD,
    )


@pytest.fixture
def square() -> FakeSquare:
    return FakeSquare()


@pytest.fixture
def index() -> FakeIndex:
    return FakeIndex()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def app(settings, square, index):
    search = SearchGateway(index, index_name="books-index", index_host="books-index.svc.pinecone.io")
    return create_app(settings=settings, square=square, search=search)


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
