import pytest
import concurrent.futures
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from order_mgt.core.database import get_db
from main import app


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    del app.dependency_overrides[get_db]

@pytest.fixture
def catalog(client):
    """Create a customer and two products through the API"""
    customer = client.post("/api/v1/customers/", json={
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "phone": "555-123-4567",
    }).json()
    lamp = client.post("/api/v1/products/", json={
        "name": "Desk Lamp",
        "description": "Adjustable LED desk lamp",
        "price": "9.99",
        "stock_quantity": "5",
    }).json()
    notebook = client.post("/api/v1/products/", json={
        "name": "Notebook",
        "price": "4.50",
        "stock_quantity": "0",
    }).json()
    return {"customer": customer, "lamp": lamp, "notebook": notebook}


class TestIntegrationAPIEndpoints:
    """Integration tests for the complete API"""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "Order Management Backend API" in response.json()["message"]

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_list_products(self, client, catalog):
        response = client.get("/api/v1/products/")
        assert response.status_code == 200
        names = [p["name"] for p in response.json()]
        assert names == ["Notebook", "Desk Lamp"]

        in_stock = client.get("/api/v1/products/", params={"in_stock": True}).json()
        assert [p["name"] for p in in_stock] == ["Desk Lamp"]

    def test_product_crud(self, client, catalog):
        lamp_id = catalog["lamp"]["id"]
        assert catalog["lamp"]["price"] == 9.99

        response = client.put(f"/api/v1/products/{lamp_id}", json={
            "name": "Floor Lamp",
            "description": "Tall lamp",
            "price": "29.50",
            "stock_quantity": "7",
        })
        assert response.status_code == 200
        assert response.json()["name"] == "Floor Lamp"
        assert response.json()["stock_quantity"] == 7

        assert client.delete(f"/api/v1/products/{lamp_id}").status_code == 204
        assert client.get(f"/api/v1/products/{lamp_id}").status_code == 404

    def test_update_missing_product_returns_404(self, client):
        response = client.put("/api/v1/products/99999", json={
            "name": "Ghost",
            "price": "1.00",
            "stock_quantity": "1",
        })
        assert response.status_code == 404

    def test_list_products_storage_failure_returns_500(self, client, session_factory):
        def broken_scalars(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("unable to open database file"))

        def override_get_db():
            db = session_factory()
            db.scalars = broken_scalars
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        response = client.get("/api/v1/products/")

        assert response.status_code == 500
        assert response.json()["detail"] == "Internal server error"

    def test_create_product_validation(self, client):
        response = client.post("/api/v1/products/", json={
            "name": "X",
            "price": "-1",
            "stock_quantity": "1",
        })
        assert response.status_code == 422

    def test_duplicate_customer_email(self, client, catalog):
        response = client.post("/api/v1/customers/", json={
            "first_name": "Another",
            "last_name": "Person",
            "email": "ada@example.com",
            "phone": "555-999-0000",
        })
        assert response.status_code == 409
        assert len(client.get("/api/v1/customers/").json()) == 1

    def test_delete_customer_not_supported(self, client, catalog):
        response = client.delete(f"/api/v1/customers/{catalog['customer']['id']}")
        assert response.status_code == 405

    def test_create_order_success(self, client, catalog):
        response = client.post("/api/v1/orders/", json={
            "customerId": catalog["customer"]["id"],
            "orderItems": [{"productId": catalog["lamp"]["id"], "quantity": 2}],
        })
        assert response.status_code == 200

        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Order placed successfully!"
        assert isinstance(body["orderId"], int)
        assert "errorCode" not in body and "error_code" not in body

        lamp = client.get(f"/api/v1/products/{catalog['lamp']['id']}").json()
        assert lamp["stock_quantity"] == 3

    def test_create_order_insufficient_stock(self, client, catalog):
        """Business failures are reported in the body, not as HTTP errors"""
        response = client.post("/api/v1/orders/", json={
            "customerId": catalog["customer"]["id"],
            "orderItems": [{"productId": catalog["lamp"]["id"], "quantity": 10}],
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is False
        assert "Insufficient stock for Desk Lamp" in body["message"]
        assert "orderId" not in body

    def test_create_order_unknown_product(self, client, catalog):
        response = client.post("/api/v1/orders/", json={
            "customerId": catalog["customer"]["id"],
            "orderItems": [{"productId": 99999, "quantity": 1}],
        })
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert "not found" in response.json()["message"]
        assert client.get("/api/v1/orders/").json() == []

    def test_create_order_without_items(self, client, catalog):
        response = client.post("/api/v1/orders/", json={
            "customerId": catalog["customer"]["id"],
            "orderItems": [],
        })
        assert response.status_code == 200
        assert response.json() == {"success": False, "message": "No items provided."}

    def test_get_orders_and_details(self, client, catalog):
        created = client.post("/api/v1/orders/", json={
            "customerId": catalog["customer"]["id"],
            "orderItems": [{"productId": catalog["lamp"]["id"], "quantity": 1}],
        }).json()

        orders = client.get("/api/v1/orders/").json()
        assert len(orders) == 1
        assert orders[0]["customer"]["email"] == "ada@example.com"
        assert orders[0]["status"] == "Completed"

        response = client.get(f"/api/v1/orders/{created['orderId']}")
        assert response.status_code == 200
        detail = response.json()
        assert detail["total_amount"] == 9.99
        assert detail["order_items"][0]["product"]["name"] == "Desk Lamp"
        assert detail["order_items"][0]["unit_price"] == 9.99

    def test_get_nonexistent_order(self, client):
        response = client.get("/api/v1/orders/99999")
        assert response.status_code == 404
        assert "Order not found" in response.json()["detail"]


class TestConcurrencyIntegration:
    """Concurrent API requests must not oversell"""

    def test_concurrent_orders_via_api(self, client, catalog):
        # Both orders want 3 of the 5 lamps in stock; only one can succeed
        def make_order_request():
            return client.post("/api/v1/orders/", json={
                "customerId": catalog["customer"]["id"],
                "orderItems": [{"productId": catalog["lamp"]["id"], "quantity": 3}],
            })

        with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
            futures = [executor.submit(make_order_request) for _ in range(2)]
            responses = [future.result() for future in futures]

        assert all(response.status_code == 200 for response in responses)
        successes = [r for r in responses if r.json()["success"]]
        assert len(successes) == 1, f"Expected 1 successful request, got {len(successes)}"

        lamp = client.get(f"/api/v1/products/{catalog['lamp']['id']}").json()
        assert lamp["stock_quantity"] == 2
