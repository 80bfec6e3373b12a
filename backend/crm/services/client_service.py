# Overview: Service-layer operations for clients.

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Client, Sale
from ..validation import ModelValidationPolicy, validate_payload

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={"client_type", "name", "website", "email", "phone", "contact_person"},
    required_on_create={"name"},
)


def list_clients(search: str | None = None) -> list[Client]:
    query = db.session.query(Client)
    if search:
        query = query.filter(Client.name.ilike(f"%{search.strip()}%"))
    return query.order_by(Client.name.asc(), Client.id.asc()).all()


def get_client(client_id: int) -> Client:
    client = db.session.get(Client, client_id)
    if client is None:
        raise NotFoundError("Client not found")
    return client


def create_client(payload: dict) -> Client:
    patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
    patch["client_type"] = patch.get("client_type") or "pharmacy"
    client = Client(**patch)
    db.session.add(client)
    db.session.commit()
    return client


def update_client(client_id: int, payload: dict) -> Client:
    client = get_client(client_id)
    patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=True)
    for key, value in patch.items():
        setattr(client, key, value)
    db.session.commit()
    return client


def delete_client(client_id: int) -> None:
    client = get_client(client_id)
    sale_count = db.session.query(Sale.id).filter(Sale.client_id == client.id).count()
    if sale_count:
        raise ConflictError(
            "Client has sales and cannot be deleted",
            details={"sales": sale_count},
        )
    db.session.delete(client)
    db.session.commit()
