"""API endpoint tests."""

from decimal import Decimal

import pytest

from foodyflow.core.email import DeliveryResult, NotificationResult, Notifier, get_notifier
from foodyflow.core.errors import NotificationFailed
from foodyflow.main import app

API = "/api/v1"


class StubNotifier(Notifier):
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def send(self, order, recipients, product_names=None):
        if self.error:
            raise NotificationFailed(self.error)
        return self.result


@pytest.fixture
def use_notifier():
    def _install(notifier):
        app.dependency_overrides[get_notifier] = lambda: notifier
        return notifier
    return _install


@pytest.fixture
def flour_order_id(client, flour, test_supplier):
    response = client.post(f"{API}/orders/", json={
        "supplier": "Mulino Bianco",
        "supplier_id": test_supplier.id,
        "order_date": "2026-03-14",
        "items": [{"product_id": flour.id, "quantity": "10", "unit_price": "2.00"}],
    })
    assert response.status_code == 201
    return response.json()["id"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


class TestProductsAPI:
    def test_create_with_unit_alias_and_opening_stock(self, client):
        response = client.post(f"{API}/products/", json={
            "code": "OLI-01",
            "name": "Olio EVO",
            "unit": "l",
            "price_per_unit": "9.50",
            "waste_percent": "5",
            "quantity": "4",
        })
        assert response.status_code == 201
        data = response.json()
        assert data["unit"] == "volume"
        assert Decimal(data["quantity_on_hand"]) == Decimal("4")
        assert Decimal(data["effective_price_per_unit"]) == Decimal("10.0000")

        movements = client.get(f"{API}/products/{data['id']}/movements").json()
        assert len(movements) == 1
        assert movements[0]["source"] == "adjustment"

    def test_duplicate_code(self, client, flour):
        response = client.post(f"{API}/products/", json={"code": "FAR-00", "name": "Altra farina"})
        assert response.status_code == 409
        assert response.json()["error"] == "duplicate"

    def test_missing_product_error_shape(self, client):
        response = client.get(f"{API}/products/9999")
        assert response.status_code == 404
        assert response.json() == {"error": "unknown_product", "detail": "Product 9999 not found"}

    def test_schema_rejects_full_waste(self, client):
        response = client.post(f"{API}/products/", json={
            "code": "X", "name": "X", "waste_percent": "100",
        })
        assert response.status_code == 422

    def test_price_update_reprices_dish(self, client, flour):
        dish = client.post(f"{API}/dishes/", json={
            "name": "Pizza Margherita",
            "selling_price": "12.00",
            "lines": [{"product_id": flour.id, "quantity": "0.5"}],
        }).json()
        assert Decimal(dish["food_cost_percent"]) == Decimal("5")

        client.put(f"{API}/products/{flour.id}", json={"price_per_unit": "2.40"})

        dish = client.get(f"{API}/dishes/{dish['id']}").json()
        assert Decimal(dish["total_cost"]) == Decimal("1.20")
        assert Decimal(dish["margin"]) == Decimal("10.80")

    def test_delete_product(self, client, flour):
        flour_id = flour.id
        assert client.delete(f"{API}/products/{flour_id}").status_code == 204
        assert client.get(f"{API}/products/{flour_id}").status_code == 404


class TestOrdersAPI:
    def test_confirm_via_status_endpoint(self, client, flour, flour_order_id):
        response = client.patch(f"{API}/orders/{flour_order_id}/status", json={"status": "confirmed"})
        assert response.status_code == 200
        assert response.json()["status"] == "confirmed"

        quantity = client.get(f"{API}/inventory/{flour.id}/quantity").json()
        assert Decimal(quantity["quantity"]) == Decimal("10")

        summary = {row["product_id"]: row for row in client.get(f"{API}/stock-movements/summary").json()}
        assert Decimal(summary[flour.id]["total_in"]) == Decimal("10")
        assert Decimal(summary[flour.id]["valuation"]) == Decimal("12.00")

    def test_invalid_status(self, client, flour_order_id):
        response = client.patch(f"{API}/orders/{flour_order_id}/status", json={"status": "shipped"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_status"

    def test_filter_by_status(self, client, flour_order_id):
        assert len(client.get(f"{API}/orders/", params={"status": "pending"}).json()) == 1
        assert client.get(f"{API}/orders/", params={"status": "confirmed"}).json() == []

    def test_delete(self, client, flour_order_id):
        assert client.delete(f"{API}/orders/{flour_order_id}").status_code == 204
        assert client.get(f"{API}/orders/{flour_order_id}").status_code == 404

    def test_send_email(self, client, use_notifier, flour_order_id):
        use_notifier(StubNotifier(result=NotificationResult(
            message="Order email sent to 2 suppliers",
            results=[
                DeliveryResult(email="farine@mulino.example.com", success=True),
                DeliveryResult(email="ordini@rossi.example.com", success=True),
            ],
        )))
        response = client.post(f"{API}/orders/{flour_order_id}/send-email")
        assert response.status_code == 200
        assert response.json()["message"] == "Order email sent to 2 suppliers"

    def test_send_email_partial(self, client, use_notifier, flour_order_id):
        use_notifier(StubNotifier(result=NotificationResult(
            message="1/2 order emails sent",
            success=False,
            results=[
                DeliveryResult(email="farine@mulino.example.com", success=True),
                DeliveryResult(email="ordini@rossi.example.com", success=False, error="Invalid recipient"),
            ],
        )))
        response = client.post(f"{API}/orders/{flour_order_id}/send-email")
        assert response.status_code == 207
        assert response.json()["results"][1]["error"] == "Invalid recipient"

    def test_send_email_failure(self, client, use_notifier, flour_order_id):
        use_notifier(StubNotifier(error="The from address does not match a verified Sender Identity."))
        response = client.post(f"{API}/orders/{flour_order_id}/send-email")
        assert response.status_code == 502
        assert response.json() == {
            "error": "notification_failed",
            "detail": "The from address does not match a verified Sender Identity.",
        }


class TestStockAndConsumptionAPI:
    def test_manual_adjustment(self, client, flour):
        response = client.post(f"{API}/stock-movements/", json={
            "product_id": flour.id, "direction": "in", "quantity": "3", "unit_price": "1.20",
        })
        assert response.status_code == 201
        assert Decimal(response.json()["total_cost"]) == Decimal("3.60")

        response = client.post(f"{API}/stock-movements/", json={
            "product_id": flour.id, "direction": "out", "quantity": "5",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "invalid_movement"

    def test_waste_roundtrip(self, client, tomatoes):
        response = client.post(f"{API}/waste/", json={"product_id": tomatoes.id, "quantity": "2"})
        assert response.status_code == 201
        waste_id = response.json()["id"]
        assert Decimal(client.get(f"{API}/waste/total").json()["total_cost"]) == Decimal("4.00")
        assert Decimal(client.get(f"{API}/inventory/{tomatoes.id}/quantity").json()["quantity"]) == Decimal("8")

        assert client.delete(f"{API}/waste/{waste_id}").status_code == 204
        assert Decimal(client.get(f"{API}/waste/total").json()["total_cost"]) == Decimal("0")
        assert Decimal(client.get(f"{API}/inventory/{tomatoes.id}/quantity").json()["quantity"]) == Decimal("10")

    def test_waste_kept_after_product_delete(self, client, tomatoes):
        tomatoes_id = tomatoes.id
        waste_id = client.post(f"{API}/waste/", json={"product_id": tomatoes_id, "quantity": "1"}).json()["id"]

        assert client.delete(f"{API}/products/{tomatoes_id}").status_code == 204

        waste = client.get(f"{API}/waste/").json()
        assert [(w["id"], w["product_id"]) for w in waste] == [(waste_id, None)]
        assert Decimal(client.get(f"{API}/waste/total").json()["total_cost"]) == Decimal("2.00")

    def test_personal_meal_unknown_dish(self, client):
        response = client.post(f"{API}/personal-meals/", json={"dish_id": 77})
        assert response.status_code == 404
        assert response.json()["error"] == "unknown_dish"


class TestCatalogAPI:
    def test_supplier_crud_unlinks_products(self, client, test_supplier, flour):
        supplier_id, flour_id = test_supplier.id, flour.id
        response = client.put(f"{API}/suppliers/{supplier_id}", json={"notes": "Consegna il martedi"})
        assert response.status_code == 200
        assert response.json()["notes"] == "Consegna il martedi"

        assert client.delete(f"{API}/suppliers/{supplier_id}").status_code == 204
        assert client.get(f"{API}/suppliers/{supplier_id}").status_code == 404
        assert client.get(f"{API}/products/{flour_id}").json()["supplier_id"] is None

    def test_supplier_email_validated(self, client):
        response = client.post(f"{API}/suppliers/", json={"name": "Caseificio", "email": "not-an-email"})
        assert response.status_code == 422

    def test_recipe_costing(self, client, tomatoes):
        response = client.post(f"{API}/recipes/", json={
            "name": "Sugo di pomodoro",
            "weight_adjustment_percent": "-50",
            "lines": [{"product_id": tomatoes.id, "quantity": "1"}],
        })
        assert response.status_code == 201
        recipe = response.json()
        assert Decimal(recipe["total_cost"]) == Decimal("2.00")
        assert Decimal(recipe["real_cost"]) == Decimal("5.00")
        assert Decimal(recipe["lines"][0]["cost"]) == Decimal("2.00")

        assert client.delete(f"{API}/recipes/{recipe['id']}").status_code == 204
        assert client.get(f"{API}/recipes/").json() == []

    def test_recipe_unknown_product(self, client):
        response = client.post(f"{API}/recipes/", json={
            "name": "Fantasma",
            "lines": [{"product_id": 404, "quantity": "1"}],
        })
        assert response.status_code == 404
        assert response.json()["error"] == "unknown_product"


class TestInventorySnapshotsAPI:
    def test_count_lifecycle(self, client, tomatoes):
        response = client.post(f"{API}/inventory-snapshots/", json={
            "product_id": tomatoes.id, "final_quantity": "9", "notes": "Conta di fine mese",
        })
        assert response.status_code == 201
        snapshot = response.json()
        assert Decimal(snapshot["theoretical_quantity"]) == Decimal("10")
        assert Decimal(snapshot["variance"]) == Decimal("1")
        assert Decimal(snapshot["variance_cost"]) == Decimal("2.00")

        listed = client.get(f"{API}/inventory-snapshots/product/{tomatoes.id}").json()
        assert [s["id"] for s in listed] == [snapshot["id"]]

        response = client.put(f"{API}/inventory-snapshots/{snapshot['id']}", json={"final_quantity": "10"})
        assert response.status_code == 200
        assert Decimal(response.json()["variance"]) == Decimal("0")
        assert response.json()["notes"] == "Conta di fine mese"

        # Counting never moves stock
        quantity = client.get(f"{API}/inventory/{tomatoes.id}/quantity").json()
        assert Decimal(quantity["quantity"]) == Decimal("10")

        assert client.delete(f"{API}/inventory-snapshots/{snapshot['id']}").status_code == 204
        assert client.get(f"{API}/inventory-snapshots/{snapshot['id']}").status_code == 404

    def test_negative_count_rejected(self, client, tomatoes):
        response = client.post(f"{API}/inventory-snapshots/", json={
            "product_id": tomatoes.id, "final_quantity": "-1",
        })
        assert response.status_code == 422

    def test_unknown_product(self, client):
        response = client.post(f"{API}/inventory-snapshots/", json={"product_id": 404, "final_quantity": "1"})
        assert response.status_code == 404
        assert response.json()["error"] == "unknown_product"
