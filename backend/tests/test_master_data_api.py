"""Tests for /products and /storages."""

import uuid


def _product(client, name, **fields):
    resp = client.post("/products/", json={"name": name, **fields})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _inventory(client, name="Main"):
    resp = client.post(
        "/inventory/",
        json={"name": name, "location": {"type": "Point", "coordinates": [0, 0]}, "total_capacity": 1000, "total_volume": 100},
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


class TestProducts:
    def test_create_with_camel_case(self, client):
        body = _product(
            client,
            "Oil",
            productCategory="Grocery",
            batchId="B-17",
            thresholdLimit=5,
            mfgDate="2026-01-01",
            expiryDate="2026-12-31",
            dimensions={"length": 0.5, "width": 0.2, "height": 0.1},
        )
        assert body["category"] == "Grocery"
        assert body["batch_id"] == "B-17"
        assert body["threshold_limit"] == 5
        assert abs(body["unit_volume"] - 0.01) < 1e-9

    def test_rejects_expiry_before_mfg(self, client):
        resp = client.post("/products/", json={"name": "Milk", "mfg_date": "2026-05-01", "expiry_date": "2026-04-01"})
        assert resp.status_code == 422
        assert resp.json()["kind"] == "InvalidRequest"

    def test_nan_body_is_422(self, client):
        resp = client.post(
            "/products/", content='{"name": "Ghost", "weight": NaN}', headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["kind"] == "InvalidRequest"
        assert all("input" not in err for err in body["detail"])

    def test_infinite_values_are_422(self, client):
        for raw in (
            '{"name": "Ghost", "price": Infinity}',
            '{"name": "Ghost", "dimensions": {"length": Infinity}}',
        ):
            resp = client.post("/products/", content=raw, headers={"Content-Type": "application/json"})
            assert resp.status_code == 422, raw
            assert resp.json()["kind"] == "InvalidRequest"

        assert client.get("/products/").json() == []

    def test_filters(self, client):
        _product(client, "Rice", category="Grocery", quantity=3, threshold_limit=10)
        _product(client, "Paper", category="Stationery", quantity=50, threshold_limit=10)

        restock = [p["name"] for p in client.get("/products/needs-restock").json()]
        assert restock == ["Rice"]

        grocery = [p["name"] for p in client.get("/products/category/grocery").json()]
        assert grocery == ["Rice"]

    def test_partial_update(self, client):
        product = _product(client, "Rice", price=10, weight=25)

        resp = client.put(f"/products/{product['id']}", json={"price": 12.5})
        assert resp.status_code == 200
        body = resp.json()
        assert body["price"] == 12.5
        assert body["weight"] == 25.0

    def test_held_product_cannot_be_deleted(self, client):
        product = _product(client, "Rice", weight=1)
        inv = _inventory(client)
        client.post(f"/inventory/{inv['id']}/products", json={"product_id": product["id"], "quantity": 1})

        resp = client.delete(f"/products/{product['id']}")
        assert resp.status_code == 409
        assert resp.json()["kind"] == "Conflict"

        client.request("DELETE", f"/inventory/{inv['id']}/products", json={"product_id": product["id"]})
        assert client.delete(f"/products/{product['id']}").status_code == 204
        assert client.get(f"/products/{product['id']}").status_code == 404

    def test_member_cannot_create(self, member_client):
        resp = member_client.post("/products/", json={"name": "Rice"})
        assert resp.status_code == 403


class TestStorages:
    def test_create_attached_to_inventory(self, client):
        inv = _inventory(client)

        resp = client.post("/storages/", json={"locationId": "RACK-9", "inventory": inv["id"], "holdingCapacity": 300})
        assert resp.status_code == 201, resp.text
        unit = resp.json()
        assert unit["inventory_id"] == inv["id"]
        assert unit["holding_capacity"] == 300.0

        assert client.get(f"/inventory/{inv['id']}").json()["storage_unit_ids"] == [unit["id"]]

    def test_blank_inventory_means_unattached(self, client):
        resp = client.post("/storages/", json={"location_id": "RACK-1", "inventory_id": ""})
        assert resp.status_code == 201
        assert resp.json()["inventory_id"] is None

    def test_list_filters(self, client):
        inv = _inventory(client)
        attached = client.post("/storages/", json={"location_id": "A", "inventory_id": inv["id"]}).json()
        loose = client.post("/storages/", json={"location_id": "B"}).json()

        in_inv = [u["id"] for u in client.get("/storages/", params={"inventory_id": inv["id"]}).json()]
        assert in_inv == [attached["id"]]

        free = [u["id"] for u in client.get("/storages/", params={"unattached": True}).json()]
        assert free == [loose["id"]]

    def test_update_keeps_attachment(self, client):
        inv = _inventory(client)
        unit = client.post("/storages/", json={"location_id": "A", "inventory_id": inv["id"]}).json()

        resp = client.put(f"/storages/{unit['id']}", json={"location_id": "A-2", "volume": 3})
        assert resp.status_code == 200
        assert resp.json()["location_id"] == "A-2"
        assert resp.json()["inventory_id"] == inv["id"]

    def test_attached_unit_cannot_be_deleted(self, client):
        inv = _inventory(client)
        unit = client.post("/storages/", json={"location_id": "A", "inventory_id": inv["id"]}).json()

        resp = client.delete(f"/storages/{unit['id']}")
        assert resp.status_code == 409

        client.request("DELETE", f"/inventory/{inv['id']}/storage", json={"storage_unit_id": unit["id"]})
        assert client.delete(f"/storages/{unit['id']}").status_code == 204

    def test_unknown_unit(self, client):
        resp = client.get(f"/storages/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json()["message"].startswith("Storage unit")
