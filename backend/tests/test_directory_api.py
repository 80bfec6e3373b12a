# Overview: Pytest coverage for clients, suppliers and salespersons.

from crm.models import Batch, Sale
from crm.services import inventory_service


class TestClientsApi:
    def test_crud(self, client, main_headers, db_session):
        resp = client.post(
            "/api/clients",
            json={"name": "North Clinic", "email": "", "phone": "+31 20 000"},
            headers=main_headers,
        )
        assert resp.status_code == 201
        created = resp.json["client"]
        assert created["client_type"] == "pharmacy"
        assert created["email"] is None

        resp = client.put(
            f"/api/clients/{created['id']}",
            json={"client_type": "clinic", "contact_person": "Dr. Who"},
            headers=main_headers,
        )
        assert resp.json["client"]["client_type"] == "clinic"

        found = client.get("/api/clients?search=north", headers=main_headers).json["clients"]
        assert [c["id"] for c in found] == [created["id"]]

        assert client.delete(f"/api/clients/{created['id']}", headers=main_headers).status_code == 200
        assert client.get(f"/api/clients/{created['id']}", headers=main_headers).status_code == 404

    def test_name_required(self, client, main_headers):
        assert client.post("/api/clients", json={"phone": "1"}, headers=main_headers).status_code == 400

    def test_unknown_field_rejected(self, client, main_headers):
        resp = client.post("/api/clients", json={"name": "X", "balance": 5}, headers=main_headers)
        assert resp.status_code == 400
        assert resp.json["error"] == "Field not allowed: balance"

    def test_delete_with_sales_409(self, client, db_session, main_headers, product, client_account):
        inventory_service.receive_batch(
            product_id=product.id, lot_number="L", purchase_date="2026-01-01",
            purchase_price=1, qty_received=5,
        )
        client.post(
            "/api/sales",
            json={"client_id": client_account.id, "product_id": product.id, "qty": 1,
                  "unit_price": 2, "sale_date": "2026-01-02"},
            headers=main_headers,
        )
        resp = client.delete(f"/api/clients/{client_account.id}", headers=main_headers)
        assert resp.status_code == 409
        assert resp.json["sales"] == 1
        assert db_session.query(Sale).count() == 1


class TestSuppliersApi:
    def test_create_falls_back_to_contact_name(self, client, main_headers):
        resp = client.post(
            "/api/suppliers",
            json={"business_name": "", "contact_name": "Jan Jansen", "categories": "antibiotics, vitamins"},
            headers=main_headers,
        )
        assert resp.status_code == 201
        supplier = resp.json["supplier"]
        assert supplier["business_name"] == "Jan Jansen"
        assert supplier["categories"] == ["antibiotics", "vitamins"]

    def test_name_required(self, client, main_headers):
        resp = client.post("/api/suppliers", json={"phone": "123"}, headers=main_headers)
        assert resp.status_code == 400

    def test_update_replaces_categories(self, client, main_headers, supplier):
        resp = client.put(
            f"/api/suppliers/{supplier.id}",
            json={"categories": ["Generics"], "supplier_city": "Utrecht"},
            headers=main_headers,
        )
        assert resp.status_code == 200
        assert resp.json["supplier"]["categories"] == ["Generics"]
        assert resp.json["supplier"]["supplier_city"] == "Utrecht"

    def test_delete_blocked_by_active_batch(self, client, db_session, main_headers, product, supplier):
        batch, _ = inventory_service.receive_batch(
            product_id=product.id, lot_number="L", purchase_date="2026-01-01",
            purchase_price=1, qty_received=5, supplier_id=supplier.id,
        )
        resp = client.delete(f"/api/suppliers/{supplier.id}", headers=main_headers)
        assert resp.status_code == 409

        inventory_service.void_batch(batch.id)
        resp = client.delete(f"/api/suppliers/{supplier.id}", headers=main_headers)
        assert resp.status_code == 200

        db_session.expire_all()
        voided = db_session.get(Batch, batch.id)
        assert voided.supplier_id is None
        assert voided.supplier_name == "Acme Pharma Supply"


class TestSalespersonsApi:
    def test_display_name_derived(self, client, main_headers):
        resp = client.post(
            "/api/salespersons",
            json={"first_name": "Ana", "last_name": "Silva", "salesperson_type": "internal"},
            headers=main_headers,
        )
        assert resp.status_code == 201
        assert resp.json["salesperson"]["display_name"] == "Ana Silva"

    def test_single_default(self, client, main_headers):
        first = client.post(
            "/api/salespersons", json={"display_name": "A", "is_default": True}, headers=main_headers
        ).json["salesperson"]
        second = client.post(
            "/api/salespersons", json={"display_name": "B"}, headers=main_headers
        ).json["salesperson"]

        resp = client.post(f"/api/salespersons/{second['id']}/default", headers=main_headers)
        assert resp.json["salesperson"]["is_default"] is True

        people = client.get("/api/salespersons", headers=main_headers).json["salespersons"]
        defaults = [p["id"] for p in people if p["is_default"]]
        assert defaults == [second["id"]]
        assert first["id"] in [p["id"] for p in people]

    def test_cannot_delete_default(self, client, main_headers):
        person = client.post(
            "/api/salespersons", json={"display_name": "A", "is_default": True}, headers=main_headers
        ).json["salesperson"]
        assert client.delete(f"/api/salespersons/{person['id']}", headers=main_headers).status_code == 409

    def test_name_required(self, client, main_headers):
        assert client.post("/api/salespersons", json={"phone": "1"}, headers=main_headers).status_code == 400
