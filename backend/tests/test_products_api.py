# Overview: Pytest coverage for the product catalogue and price tiers.

import pytest


class TestProductsApi:
    def test_create_with_category_and_tiers(self, client, main_headers, db_session):
        resp = client.post(
            "/api/products",
            json={
                "code": "PARA-500",
                "official_name": "Paracetamol 500mg",
                "market_name": "Panadol",
                "category": "Analgesics",
                "default_sell_price": "1.2345",
                "price_tiers": [
                    {"min_qty": 100, "unit_price": "1.000"},
                    {"min_qty": 10, "unit_price": "1.100"},
                ],
            },
            headers=main_headers,
        )
        assert resp.status_code == 201
        product = resp.json["product"]
        assert product["category"] == "Analgesics"
        assert product["default_sell_price"] == 1.235
        assert [t["min_qty"] for t in product["price_tiers"]] == [10, 100]
        assert product["on_hand"] == 0
        assert product["avg_purchase_price"] is None

    def test_duplicate_code_409(self, client, main_headers, product):
        resp = client.post(
            "/api/products",
            json={"code": product.code, "official_name": "Copy"},
            headers=main_headers,
        )
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "payload",
        [
            {"official_name": "No code"},
            {"code": "X", "official_name": "X", "default_sell_price": -1},
            {"code": "X", "official_name": "X", "avg_purchase_price": 1},
            {"code": "X", "official_name": "X", "price_tiers": [{"min_qty": 0, "unit_price": 1}]},
            {"code": "X", "official_name": "X", "price_tiers": [{"min_qty": 5, "unit_price": "0.0004"}]},
            {"code": "X", "official_name": "X",
             "price_tiers": [{"min_qty": 5, "unit_price": 1}, {"min_qty": 5, "unit_price": 2}]},
        ],
    )
    def test_create_validation_400(self, client, main_headers, payload):
        resp = client.post("/api/products", json=payload, headers=main_headers)
        assert resp.status_code == 400

    def test_update_partial(self, client, main_headers, product):
        resp = client.put(
            f"/api/products/{product.id}",
            json={"market_name": "Amoxil", "category": "Antibiotics"},
            headers=main_headers,
        )
        assert resp.status_code == 200
        body = resp.json["product"]
        assert body["market_name"] == "Amoxil"
        assert body["official_name"] == "Amoxicillin 500mg"
        assert body["category"] == "Antibiotics"

    def test_archive_hides_from_default_list(self, client, main_headers, product):
        assert client.post(f"/api/products/{product.id}/archive", headers=main_headers).status_code == 200

        assert client.get("/api/products", headers=main_headers).json["products"] == []
        listed = client.get("/api/products?include_archived=1", headers=main_headers).json["products"]
        assert listed[0]["is_archived"] is True

        resp = client.post(f"/api/products/{product.id}/unarchive", headers=main_headers)
        assert resp.json["product"]["is_archived"] is False

    def test_replace_and_delete_tier(self, client, main_headers, product):
        resp = client.put(
            f"/api/products/{product.id}/price-tiers",
            json={"price_tiers": [{"min_qty": 50, "unit_price": "3.500"}]},
            headers=main_headers,
        )
        assert resp.json["product"]["price_tiers"] == [{"min_qty": 50, "unit_price": 3.5}]

        assert client.delete(f"/api/products/{product.id}/price-tiers/50", headers=main_headers).status_code == 200
        assert client.delete(f"/api/products/{product.id}/price-tiers/50", headers=main_headers).status_code == 404

    def test_unknown_product_404(self, client, main_headers):
        assert client.get("/api/products/999", headers=main_headers).status_code == 404
        assert client.put("/api/products/999", json={}, headers=main_headers).status_code == 404
