"""
HTTP API tests through the Flask test client.

Verifies:
- Response shapes of every route
- Error mapping: 400 / 404 / 409 / 503 with {"error", "code"} bodies
- X-Request-ID is echoed (or generated) on every response
"""

from decimal import Decimal

import pytest

from blindbox_api import create_app
from blindbox_kernel.domain.random_source import ScriptedRandomSource
from blindbox_kernel.domain.values import CollectibleItem, Product, StockLevels, Tier
from blindbox_kernel.exceptions import StoreUnavailableError
from blindbox_services.backpack import MAX_QUANTITY_PER_LINE


@pytest.fixture
def system(memory_system_factory, product_factory):
    return memory_system_factory(products=[product_factory(1), product_factory(2)])


@pytest.fixture
def client(system):
    app = create_app(system=system)
    app.config["TESTING"] = True
    return app.test_client()


def _error(response):
    body = response.get_json()
    assert set(body) == {"error", "code"}
    return body


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "ok"}

    def test_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"

    def test_request_id_generated(self, client):
        assert len(client.get("/health").headers["X-Request-ID"]) == 32

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/api/nowhere")
        assert response.status_code == 404
        assert _error(response)["code"] == "NOT_FOUND"


class TestProducts:
    def test_list_products(self, client):
        response = client.get("/api/products")

        assert response.status_code == 200
        body = response.get_json()
        assert body["message"] == "success"
        first = body["data"][0]
        assert first["id"] == 1
        assert first["name"] == "Test Series 1"
        assert first["price"] == 999.0
        assert first["img"] == "img/product1.jpg"
        assert first["stocks"] == {"common": 20, "rare": 10, "secret": 2}
        assert first["totalStock"] == 32
        assert first["items"][0] == {"id": "P1-001", "name": "Secret One", "type": "secret"}
        assert [p["id"] for p in body["data"]] == [1, 2]


class TestConfig:
    def test_get_default(self, client):
        response = client.get("/api/config")
        assert response.get_json() == {
            "message": "success",
            "data": {"common": 60, "rare": 30, "secret": 10},
        }

    def test_set_then_get(self, client):
        response = client.post("/api/config", json={"common": 50, "rare": 30, "secret": 20})
        assert response.status_code == 200
        assert response.get_json() == {"message": "success"}
        assert client.get("/api/config").get_json()["data"] == {"common": 50, "rare": 30, "secret": 20}

    def test_bad_total_rejected(self, client):
        response = client.post("/api/config", json={"common": 50, "rare": 30, "secret": 10})

        assert response.status_code == 400
        body = _error(response)
        assert body["error"] == "Total must be 100"
        assert body["code"] == "INVALID_PROBABILITY_CONFIG"
        assert client.get("/api/config").get_json()["data"]["common"] == 60

    def test_partial_config_rejected(self, client):
        response = client.post("/api/config", json={"common": 100})
        assert response.status_code == 400

    def test_non_object_body_rejected(self, client):
        response = client.post("/api/config", json=[60, 30, 10])
        assert response.status_code == 400
        assert _error(response)["code"] == "VALIDATION_ERROR"


class TestInventory:
    def test_adjust_stock(self, client, system):
        response = client.post("/api/inventory/1/stock", json={"rarity": "secret", "amount": 5})

        assert response.status_code == 200
        assert response.get_json() == {"message": "success"}
        assert system.inventory.stock_of(1).secret == 7

    def test_amount_as_string(self, client, system):
        client.post("/api/inventory/1/stock", json={"rarity": "rare", "amount": "-4"})
        assert system.inventory.stock_of(1).rare == 6

    def test_clamps_at_zero(self, client, system):
        client.post("/api/inventory/1/stock", json={"rarity": "common", "amount": -100})
        assert system.inventory.stock_of(1).common == 0

    def test_missing_amount_is_no_op(self, client, system):
        response = client.post("/api/inventory/1/stock", json={"rarity": "common"})
        assert response.status_code == 200
        assert system.inventory.stock_of(1).common == 20

    @pytest.mark.parametrize("rarity", ["legendary", "RARE", " rare"])
    def test_invalid_rarity(self, client, system, rarity):
        response = client.post("/api/inventory/1/stock", json={"rarity": rarity, "amount": 1})
        assert response.status_code == 400
        assert "Invalid rarity" in _error(response)["error"]
        assert system.inventory.stock_of(1).rare == 10

    def test_non_integer_amount(self, client):
        response = client.post("/api/inventory/1/stock", json={"rarity": "rare", "amount": "lots"})
        assert response.status_code == 400

    def test_unknown_product(self, client):
        response = client.post("/api/inventory/99/stock", json={"rarity": "rare", "amount": 1})
        assert response.status_code == 404
        body = _error(response)
        assert "Product not found" in body["error"]
        assert body["code"] == "PRODUCT_NOT_FOUND"


class TestCheckout:
    def test_direct_checkout(self, client):
        response = client.post(
            "/api/checkout/direct",
            json={"items": [{"id": 1, "quantity": 2}, {"id": "2"}]},
        )

        assert response.status_code == 200
        assert response.get_json() == {"message": "success", "data": {"itemsAdded": 3}}
        items = client.get("/api/backpack").get_json()["data"]["items"]
        assert sorted(i["productId"] for i in items) == [1, 1, 2]

    @pytest.mark.parametrize("body", [{}, {"items": []}, {"items": "all"}])
    def test_no_items(self, client, body):
        response = client.post("/api/checkout/direct", json=body)
        assert response.status_code == 400
        assert _error(response)["error"] == "No items provided"

    def test_bad_quantity(self, client):
        response = client.post("/api/checkout/direct", json={"items": [{"id": 1, "quantity": 0}]})
        assert response.status_code == 400
        assert _error(response)["code"] == "INVALID_CHECKOUT"

    def test_quantity_above_cap(self, client):
        response = client.post(
            "/api/checkout/direct",
            json={"items": [{"id": 1, "quantity": MAX_QUANTITY_PER_LINE + 1}]},
        )
        assert response.status_code == 400
        body = _error(response)
        assert body["code"] == "INVALID_CHECKOUT"
        assert f"exceeds {MAX_QUANTITY_PER_LINE}" in body["error"]
        assert client.get("/api/backpack").get_json()["data"]["items"] == []

    def test_unknown_product_adds_nothing(self, client):
        response = client.post(
            "/api/checkout/direct", json={"items": [{"id": 1}, {"id": 42}]}
        )
        assert response.status_code == 404
        assert client.get("/api/backpack").get_json()["data"]["items"] == []


class TestBackpack:
    def test_entry_shape(self, client):
        client.post("/api/checkout/direct", json={"items": [{"id": 1}]})

        (entry,) = client.get("/api/backpack").get_json()["data"]["items"]

        assert entry["productId"] == 1
        assert entry["productName"] == "Test Series 1"
        assert entry["status"] == "unopened"
        assert entry["rarity"] in {"common", "rare", "secret"}
        assert entry["itemId"].startswith("P1-")
        assert entry["createdAt"].endswith("+00:00")
        assert entry["openedAt"] is None
        assert entry["openedRarity"] is None
        assert len(entry["_id"]) == 36

    def test_open_then_reopen(self, client, system):
        client.post("/api/checkout/direct", json={"items": [{"id": 1}]})
        (entry,) = client.get("/api/backpack").get_json()["data"]["items"]

        opened = client.post(f"/api/backpack/items/{entry['_id']}/open")
        again = client.post(f"/api/backpack/items/{entry['_id']}/open")

        assert opened.status_code == 200
        body = opened.get_json()
        assert body["message"] == "success"
        assert body["rarity"] in {"common", "rare", "secret"}
        assert system.inventory.stock_of(1).total == 31

        assert again.status_code == 409
        assert _error(again) == {"error": "Item already opened", "code": "ALREADY_OPENED"}
        assert system.inventory.stock_of(1).total == 31

        (stored,) = client.get("/api/backpack").get_json()["data"]["items"]
        assert stored["status"] == "opened"
        assert stored["openedRarity"] == body["rarity"]
        assert stored["openedAt"] is not None

    @pytest.mark.parametrize("entry_id", ["0b4f6a0e-7d3c-4f5e-9a41-3f2d1c0b9a87", "garbage"])
    def test_open_unknown_entry(self, client, entry_id):
        response = client.post(f"/api/backpack/items/{entry_id}/open")
        assert response.status_code == 404
        assert "Backpack item not found" in _error(response)["error"]


class TestServerErrors:
    def test_empty_tier_is_500(self, memory_system_factory):
        commons_only = Product(
            product_id=9,
            name="Commons",
            price=Decimal("1.00"),
            items=(CollectibleItem("C-1", "Plain", Tier.COMMON),),
            stocks=StockLevels(common=1),
        )
        rng = ScriptedRandomSource.from_percent(5.0, 0.0)
        client = create_app(
            system=memory_system_factory(products=[commons_only], rng=rng)
        ).test_client()

        response = client.post("/api/checkout/direct", json={"items": [{"id": 9}]})

        assert response.status_code == 500
        assert _error(response)["code"] == "EMPTY_TIER"

    def test_store_unavailable_is_503(self, client, system, monkeypatch):
        def _down():
            raise StoreUnavailableError("find_all", "connection refused")

        monkeypatch.setattr(system.backpack_store, "find_all", _down)

        response = client.get("/api/backpack")

        assert response.status_code == 503
        assert _error(response)["code"] == "STORE_UNAVAILABLE"

    def test_unexpected_error_is_500(self, client, system, monkeypatch):
        def _boom():
            raise RuntimeError("boom")

        monkeypatch.setattr(system.catalog_store, "list_products", _boom)

        response = client.get("/api/products")

        assert response.status_code == 500
        assert _error(response) == {"error": "Internal server error", "code": "INTERNAL_ERROR"}
