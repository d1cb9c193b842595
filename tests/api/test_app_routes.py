import json
from typing import Callable

import httpx
import pytest
from fastapi.testclient import TestClient

from sourcecart.core.client import SourceCartClient
from sourcecart.core.config import CoreConfig
from sourcecart.server.helpers.clients import ClientRegistry, wishlist_storage_key
from sourcecart.server.main import create_app
from tests.helpers._payloads import marketplace_a_raw, merchant_raw

CONFIG = CoreConfig(api_base_url="https://api.test/api/", retry_backoff_seconds=0)
AUTH = {"Authorization": "Bearer tok-1"}


class Upstream:
    """Routes MockTransport requests to per-path handlers and records them."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []
        self.wishlist: dict[str, int] = {}

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": f"no route for {request.url.path}"})
        return handler(request)


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def client(upstream: Upstream):
    registry = ClientRegistry(
        CONFIG,
        client_factory=lambda token: SourceCartClient(
            CONFIG,
            token=token,
            transport=httpx.MockTransport(upstream.handle),
        ),
    )
    with TestClient(create_app(registry)) as test_client:
        yield test_client


def _product_body(client: TestClient, upstream: Upstream) -> dict:
    upstream.routes[("GET", "/api/product/details/1688/610947572360")] = lambda request: httpx.Response(
        200, json=marketplace_a_raw()
    )
    return client.get("/api/v1/products/1688/610947572360").json()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_get_product_returns_variants_groups_and_listing(client: TestClient, upstream: Upstream) -> None:
    body = _product_body(client, upstream)

    assert body["product"]["id"] == "610947572360"
    assert body["product"]["min_order_qty"] == 2
    assert [variant["key"] for variant in body["variants"]] == ["spec-red-m", "spec-red-l", "spec-blue-m"]
    assert [group["value"] for group in body["groups"]] == ["Red", "Blue"]
    assert body["active_group"] == "Red"
    assert body["listing_item"]["src"] == "1688"


def test_get_product_service_not_available_maps_to_503(client: TestClient, upstream: Upstream) -> None:
    upstream.routes[("GET", "/api/product/details/local/321")] = lambda request: httpx.Response(
        400, json={"error": "Invalid country or service not available"}
    )

    response = client.get("/api/v1/products/local/321")

    assert response.status_code == 503


def test_get_product_upstream_failure_maps_to_502(client: TestClient, upstream: Upstream) -> None:
    upstream.routes[("GET", "/api/product/details/tb/1")] = lambda request: httpx.Response(500, text="boom")

    response = client.get("/api/v1/products/tb/1")

    assert response.status_code == 502
    # One retry, then give up.
    assert len(upstream.requests) == 2


def test_compose_returns_cart_lines(client: TestClient, upstream: Upstream) -> None:
    body = _product_body(client, upstream)

    response = client.post(
        "/api/v1/cart/compose",
        json={
            "product": body["product"],
            "variants": body["variants"],
            "quantities": {"spec-red-m": 1, "spec-blue-m": 2},
        },
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_quantity"] == 3
    assert payload["subtotal"] == "34.5"
    lines = {line["vinfo"]: line for line in payload["lines"]}
    assert lines["spec-red-m"]["weight"] == 500
    assert lines["spec-red-m"]["volume"] == 1000
    assert lines["spec-blue-m"]["price"] == "11"


def test_compose_below_minimum_order_is_422(client: TestClient, upstream: Upstream) -> None:
    body = _product_body(client, upstream)

    response = client.post(
        "/api/v1/cart/compose",
        json={"product": body["product"], "variants": body["variants"], "quantities": {"spec-red-m": 1}},
    )

    assert response.status_code == 422
    assert response.json()["detail"] == {"code": "below_minimum_order", "message": "Minimum order quantity is 2."}


def test_compose_quantity_above_stock_is_422(client: TestClient, upstream: Upstream) -> None:
    body = _product_body(client, upstream)

    response = client.post(
        "/api/v1/cart/compose",
        json={"product": body["product"], "variants": body["variants"], "quantities": {"spec-red-m": 4}},
    )

    assert response.status_code == 422
    assert "exceeds available stock" in response.json()["detail"]


def test_add_to_cart_requires_a_bearer_token(client: TestClient, upstream: Upstream) -> None:
    body = _product_body(client, upstream)
    upstream.requests.clear()

    response = client.post(
        "/api/v1/cart",
        json={"product": body["product"], "variants": body["variants"], "quantities": {"spec-red-l": 2}},
    )

    assert response.status_code == 401
    assert upstream.requests == []


def test_add_to_cart_reports_partial_failures(client: TestClient, upstream: Upstream) -> None:
    body = _product_body(client, upstream)

    def cart(request: httpx.Request) -> httpx.Response:
        line = json.loads(request.content)
        if line["vinfo"] == "spec-blue-m":
            return httpx.Response(500, json={"message": "out of stock"})
        return httpx.Response(200, json={"status": "success"})

    upstream.routes[("POST", "/api/actions/cart")] = cart

    response = client.post(
        "/api/v1/cart",
        json={
            "product": body["product"],
            "variants": body["variants"],
            "quantities": {"spec-red-l": 2, "spec-blue-m": 1},
        },
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.json() == {
        "successful": 1,
        "failed": 1,
        "notices": [
            {"level": "success", "message": "Added 1 variant(s) to cart."},
            {"level": "error", "message": "Failed to add 1 variant(s)."},
        ],
    }
    cart_requests = [request for request in upstream.requests if request.url.path == "/api/actions/cart"]
    assert all(request.headers["Authorization"] == "Bearer tok-1" for request in cart_requests)


def test_wishlist_membership_without_token_is_unknown(client: TestClient) -> None:
    response = client.get("/api/v1/wishlist/610947572360")

    assert response.status_code == 200
    assert response.json()["in_wishlist"] is False
    assert response.json()["state"] == "unknown"


def _install_wishlist(upstream: Upstream) -> None:
    def fetch(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"data": [{"id": rid, "pid": pid} for pid, rid in upstream.wishlist.items()]},
        )

    def add(request: httpx.Request) -> httpx.Response:
        pid = json.loads(request.content)["pid"]
        upstream.wishlist[pid] = 300 + len(upstream.wishlist)
        return httpx.Response(200, json={"status": "success", "data": {"id": upstream.wishlist[pid]}})

    def remove(request: httpx.Request) -> httpx.Response:
        remote_id = json.loads(request.content)["id"]
        upstream.wishlist = {pid: rid for pid, rid in upstream.wishlist.items() if rid != remote_id}
        return httpx.Response(200, json={"status": "success"})

    upstream.routes[("GET", "/api/account/wishlist")] = fetch
    upstream.routes[("POST", "/api/actions/wishlist")] = add
    upstream.routes[("DELETE", "/api/actions/wishlist")] = remove


def test_wishlist_toggle_adds_then_removes(client: TestClient, upstream: Upstream) -> None:
    _install_wishlist(upstream)
    item = {"pid": "610947572360", "src": "1688", "title": "Cotton T-shirt", "img": "", "price": "12.5"}

    added = client.post("/api/v1/wishlist/toggle", json=item, headers=AUTH)
    membership = client.get("/api/v1/wishlist/610947572360", headers=AUTH)
    removed = client.post("/api/v1/wishlist/toggle", json=item, headers=AUTH)

    assert added.status_code == 200
    assert added.json()["state"] == "in_wishlist"
    assert added.json()["remote_id"] == 300
    assert membership.json()["in_wishlist"] is True
    assert removed.json()["state"] == "not_in_wishlist"
    assert upstream.wishlist == {}
    wishlist_fetches = [request for request in upstream.requests if request.url.path == "/api/account/wishlist"]
    assert len(wishlist_fetches) == 1


def test_wishlist_toggle_requires_a_bearer_token(client: TestClient) -> None:
    response = client.post("/api/v1/wishlist/toggle", json={"pid": "1"})
    assert response.status_code == 401


def test_wishlist_refresh_lists_cached_members(client: TestClient, upstream: Upstream) -> None:
    _install_wishlist(upstream)
    upstream.wishlist = {"a": 1, "b": 2}

    first = client.post("/api/v1/wishlist/refresh", headers=AUTH)
    second = client.post("/api/v1/wishlist/refresh", headers=AUTH)

    assert first.json()["refreshed"] is True
    assert sorted(item["pid"] for item in first.json()["items"]) == ["a", "b"]
    assert second.json()["refreshed"] is False


def test_related_products_degrade_to_empty_list(client: TestClient, upstream: Upstream) -> None:
    upstream.routes[("GET", "/api/product/related/local/321")] = lambda request: httpx.Response(
        200, json={"data": [{"id": 9, "title": "Tea Tin", "price": "120"}]}
    )

    related = client.get("/api/v1/products/local/321/related")
    like = client.get("/api/v1/products/local/321/related", params={"kind": "like"})

    assert related.json()["items"][0]["pid"] == "9"
    assert like.json() == {"items": []}


def test_wishlist_storage_keys_are_namespaced_per_token() -> None:
    assert wishlist_storage_key("tok-1") != wishlist_storage_key("tok-2")
    assert wishlist_storage_key("tok-1").startswith("wishlist:v1:")


def test_merchant_product_display_price(client: TestClient, upstream: Upstream) -> None:
    upstream.routes[("GET", "/api/product/details/local/321")] = lambda request: httpx.Response(200, json=merchant_raw())

    body = client.get("/api/v1/products/local/321").json()

    assert body["product"]["display_price"] == "300"
    assert body["product"]["currency"] == "INR"


def test_vendor_products_route(client: TestClient, upstream: Upstream) -> None:
    upstream.routes[("GET", "/api/product/vendor/1688/610947572360")] = lambda request: httpx.Response(
        200, json={"result": {"success": True, "result": {"data": [{"offerId": 3, "subject": "Mug"}]}}}
    )

    response = client.get(
        "/api/v1/products/1688/610947572360/related",
        params={"kind": "vendor", "seller": "BBBseller01"},
    )
    merchant = client.get("/api/v1/products/local/321/related", params={"kind": "vendor"})

    assert [item["pid"] for item in response.json()["items"]] == ["3"]
    assert upstream.requests[0].url.params["seller"] == "BBBseller01"
    assert merchant.json() == {"items": []}


def test_shutdown_closes_wishlist_sessions(upstream: Upstream) -> None:
    _install_wishlist(upstream)
    registry = ClientRegistry(
        CONFIG,
        client_factory=lambda token: SourceCartClient(CONFIG, token=token, transport=httpx.MockTransport(upstream.handle)),
    )

    with TestClient(create_app(registry)) as test_client:
        test_client.get("/api/v1/wishlist/610947572360", headers=AUTH)
        assert len(registry) == 1

    assert len(registry) == 0
