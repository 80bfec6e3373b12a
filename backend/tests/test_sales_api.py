# Overview: Pytest coverage for sale recording, voiding and salesperson defaults over HTTP.

import pytest

from crm.models import Salesperson
from crm.services import inventory_service


@pytest.fixture
def stocked(db_session, product):
    inventory_service.receive_batch(
        product_id=product.id, lot_number="L1", purchase_date="2026-01-01",
        purchase_price="1.500", qty_received=100,
    )
    return product


def _sale(client_account, product, **overrides):
    payload = {
        "client_id": client_account.id,
        "product_id": product.id,
        "qty": 30,
        "unit_price": "2.500",
        "sale_date": "2026-01-15",
    }
    payload.update(overrides)
    return payload


class TestSalesApi:
    def test_record_and_void_restores_on_hand(self, client, main_headers, stocked, client_account):
        resp = client.post("/api/sales", json=_sale(client_account, stocked), headers=main_headers)
        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["total"] == 75.0
        assert sale["client_name"] == "Central Pharmacy"
        assert client.get(f"/api/inventory/{stocked.id}", headers=main_headers).json["on_hand"] == 70

        resp = client.post(f"/api/sales/{sale['id']}/void", headers=main_headers)
        assert resp.status_code == 200
        assert resp.json["sale"]["id"] == sale["id"]
        assert client.get(f"/api/inventory/{stocked.id}", headers=main_headers).json["on_hand"] == 100
        assert client.get(f"/api/sales/{sale['id']}", headers=main_headers).status_code == 404

    def test_insufficient_stock_409(self, client, main_headers, stocked, client_account):
        resp = client.post("/api/sales", json=_sale(client_account, stocked, qty=101), headers=main_headers)
        assert resp.status_code == 409
        assert resp.json["on_hand"] == 100
        assert resp.json["requested"] == 101
        assert client.get("/api/sales", headers=main_headers).json["sales"] == []

    def test_archived_product_409(self, client, main_headers, stocked, client_account):
        client.post(f"/api/products/{stocked.id}/archive", headers=main_headers)
        resp = client.post("/api/sales", json=_sale(client_account, stocked), headers=main_headers)
        assert resp.status_code == 409

    @pytest.mark.parametrize(
        "overrides,status",
        [
            ({"qty": 0}, 400),
            ({"unit_price": -1}, 400),
            ({"unit_price": "0.0004"}, 400),
            ({"sale_date": "yesterday"}, 400),
            ({"client_id": 424242}, 404),
            ({"salesperson_id": 424242}, 404),
        ],
    )
    def test_rejected_inputs(self, client, main_headers, stocked, client_account, overrides, status):
        resp = client.post("/api/sales", json=_sale(client_account, stocked, **overrides), headers=main_headers)
        assert resp.status_code == status
        assert client.get(f"/api/inventory/{stocked.id}", headers=main_headers).json["on_hand"] == 100

    def test_default_salesperson_attached(self, client, db_session, main_headers, stocked, client_account):
        person = Salesperson(display_name="House Account", is_default=True)
        db_session.add(person)
        db_session.commit()

        sale = client.post("/api/sales", json=_sale(client_account, stocked), headers=main_headers).json["sale"]
        assert sale["salesperson_id"] == person.id
        assert sale["salesperson_name"] == "House Account"

    def test_filters(self, client, main_headers, stocked, client_account):
        client.post("/api/sales", json=_sale(client_account, stocked, qty=1), headers=main_headers)
        client.post("/api/sales", json=_sale(client_account, stocked, qty=2), headers=main_headers)

        by_client = client.get(f"/api/sales?client_id={client_account.id}", headers=main_headers).json["sales"]
        assert len(by_client) == 2
        assert client.get("/api/sales?product_id=999", headers=main_headers).json["sales"] == []
        assert client.get("/api/sales?client_id=abc", headers=main_headers).status_code == 400

    def test_void_unknown_404(self, client, main_headers):
        assert client.post("/api/sales/31337/void", headers=main_headers).status_code == 404
