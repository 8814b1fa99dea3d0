# Overview: Pytest coverage for the HTTP API (status codes and JSON error bodies).

from posbackend.models import Product


class TestSystemRoutes:

    def test_health(self, client, db_session):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.get_json()
        assert body["status"] == "ok"
        assert body["checks"]["database"]["status"] == "healthy"

    def test_cors_header_for_allowed_origin(self, client, db_session):
        response = client.get("/api/health", headers={"Origin": "http://localhost:5173"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://localhost:5173"

        response = client.get("/api/health", headers={"Origin": "http://evil.example"})
        assert "Access-Control-Allow-Origin" not in response.headers


class TestCatalogRoutes:

    def test_category_crud(self, client, db_session):
        response = client.post("/api/categories", json={"name": "Produce"})
        assert response.status_code == 201
        category_id = response.get_json()["id"]

        response = client.put(f"/api/categories/{category_id}", json={"description": "Fresh"})
        assert response.status_code == 200
        assert response.get_json()["description"] == "Fresh"

        assert client.get(f"/api/categories/{category_id}").status_code == 200
        assert client.delete(f"/api/categories/{category_id}").get_json() == {"success": True}
        assert client.get(f"/api/categories/{category_id}").status_code == 404

    def test_delete_category_with_products(self, client, db_session, product, category):
        response = client.delete(f"/api/categories/{category.id}")
        assert response.status_code == 409
        assert response.get_json()["kind"] == "category has products"

    def test_validation_error_body(self, client, db_session):
        response = client.post("/api/products", json={"name": "No price"})
        assert response.status_code == 400
        body = response.get_json()
        assert body["kind"] == "missing fields"
        assert "price" in body["details"]["fields"]
        assert "error" in body

    def test_products_filter_and_stock(self, client, db_session, product, category):
        response = client.get(f"/api/products?category_id={category.id}")
        assert [p["id"] for p in response.get_json()] == [product.id]

        response = client.post(f"/api/products/{product.id}/stock",
                               json={"quantity_change": 5, "operation": "add"})
        assert response.status_code == 200
        assert response.get_json()["stock_quantity"] == 105

        response = client.post(f"/api/products/{product.id}/stock",
                               json={"quantity_change": 500, "operation": "subtract"})
        assert response.status_code == 400
        assert response.get_json()["kind"] == "negative stock"


class TestSalesRoutes:

    def test_create_sale(self, client, db_session, sale_payload, product, tax):
        product_id = product.id
        sale_payload["tax_id"] = tax.id
        response = client.post("/api/sales", json=sale_payload)

        assert response.status_code == 201
        body = response.get_json()
        assert body["total_amount"] == 22.0
        assert body["items"][0]["total_price"] == 20.0
        db_session.expire_all()
        assert db_session.get(Product, product_id).stock_quantity == 98

        assert client.get(f"/api/sales/{body['id']}").get_json() == body
        listed = client.get("/api/sales").get_json()
        assert [s["id"] for s in listed] == [body["id"]]

    def test_insufficient_stock(self, client, db_session, sale_payload):
        sale_payload["items"][0]["quantity"] = 101
        response = client.post("/api/sales", json=sale_payload)

        assert response.status_code == 400
        body = response.get_json()
        assert body["kind"] == "insufficient stock"
        assert body["details"]["available"] == 100
        assert body["details"]["required"] == 101

    def test_missing_product(self, client, db_session, sale_payload):
        sale_payload["items"][0]["product_id"] = 13579
        response = client.post("/api/sales", json=sale_payload)
        assert response.status_code == 404
        assert response.get_json()["details"]["missing_ids"] == [13579]

    def test_non_json_body(self, client, db_session):
        response = client.post("/api/sales", data="nope", content_type="text/plain")
        assert response.status_code == 400

    def test_get_missing_sale(self, client, db_session):
        assert client.get("/api/sales/999999").status_code == 404


class TestOtherRoutes:

    def test_staff_duplicate_email(self, client, db_session, staff):
        response = client.post("/api/staff", json={"name": "Dup", "email": "casey@pos.local", "role": "cashier"})
        assert response.status_code == 409
        assert response.get_json()["kind"] == "duplicate email"

    def test_printers(self, client, db_session):
        response = client.post("/api/printers", json={
            "name": "Bar", "ip_address": "10.0.0.9", "port": 9100, "printer_type": "thermal",
        })
        assert response.status_code == 201
        assert len(client.get("/api/printers").get_json()) == 1

    def test_taxes_and_discounts(self, client, db_session, tax, inactive_tax):
        assert len(client.get("/api/taxes").get_json()) == 2
        assert len(client.get("/api/taxes?active_only=true").get_json()) == 1

        response = client.post("/api/discounts", json={"name": "Half", "type": "percentage", "value": 50})
        assert response.status_code == 201
        discount_id = response.get_json()["id"]
        response = client.put(f"/api/discounts/{discount_id}", json={"is_active": False})
        assert response.get_json()["is_active"] is False

    def test_sales_report_requires_dates(self, client, db_session):
        assert client.get("/api/reports/sales").status_code == 400
        response = client.get("/api/reports/sales?start_date=2000-01-01T00:00:00Z&end_date=2100-01-01T00:00:00Z")
        assert response.status_code == 200
        assert response.get_json()["total_transactions"] == 0


class TestBackupRoutes:

    def test_backup_and_restore(self, client, db_session, sale_payload, product):
        product_id = product.id
        assert client.post("/api/sales", json=sale_payload).status_code == 201

        snapshot = client.get("/api/backup").get_json()
        assert len(snapshot["sales"]) == 1

        client.post(f"/api/products/{product_id}/stock", json={"quantity_change": 0, "operation": "set"})

        response = client.post("/api/backup/restore", json=snapshot)
        assert response.status_code == 200
        assert response.get_json()["success"] is True
        db_session.expire_all()
        assert db_session.get(Product, product_id).stock_quantity == 98

    def test_restore_rejects_garbage(self, client, db_session, product):
        response = client.post("/api/backup/restore", json={"timestamp": "2026-01-01T00:00:00Z"})
        assert response.status_code == 400
        assert response.get_json()["kind"] == "invalid snapshot"
        assert client.get(f"/api/products/{product.id}").status_code == 200
