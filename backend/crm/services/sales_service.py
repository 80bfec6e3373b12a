# Overview: Service-layer operations for sales; each sale and each void moves stock through the ledger.

from decimal import Decimal

from ..errors import ConflictError, NotFoundError
from ..extensions import db
from ..models import Client, Sale, Salesperson
from ..models.inventory import MOVEMENT_ADJ, MOVEMENT_OUT
from ..validation import (
    coerce_date,
    optional_text,
    require_id,
    require_positive_int,
    require_positive_price,
)
from .concurrency import lock_for_update, run_with_retry
from .inventory_service import append_movement, get_on_hand, get_product


class InsufficientStockError(ConflictError):
    """Requested sale quantity exceeds the ledger-derived on-hand."""

    def __init__(self, product_id: int, on_hand: int, requested: int):
        super().__init__(
            f"Not enough stock for product {product_id}. Available = {on_hand}, requested = {requested}",
            details={"product_id": product_id, "on_hand": on_hand, "requested": requested},
        )


def _resolve_salesperson(salesperson_id) -> Salesperson | None:
    if salesperson_id in (None, ""):
        return db.session.query(Salesperson).filter(Salesperson.is_default.is_(True)).first()
    salesperson = db.session.get(Salesperson, require_id(salesperson_id, "salesperson_id"))
    if salesperson is None:
        raise NotFoundError("Salesperson not found")
    return salesperson


def record_sale(
    *,
    client_id,
    product_id,
    qty,
    unit_price,
    sale_date,
    salesperson_id=None,
    note=None,
    user_id: int | None = None,
) -> Sale:
    """
    Insert the sale row and its OUT movement in one transaction.

    Stock is checked against the ledger under a product row lock; a sale
    that would take on-hand below zero is refused with no mutation.
    """
    client_id = require_id(client_id, "client_id")
    product_id = require_id(product_id, "product_id")
    qty = require_positive_int(qty, "qty")
    unit_price = require_positive_price(unit_price, "unit_price")
    sale_date = coerce_date(sale_date, "sale_date")
    note = optional_text(note, 255, "note")

    def _op():
        if db.session.get(Client, client_id) is None:
            raise NotFoundError("Client not found")
        get_product(product_id, lock=True, require_active=True)
        salesperson = _resolve_salesperson(salesperson_id)

        on_hand = get_on_hand(product_id)
        if qty > on_hand:
            raise InsufficientStockError(product_id, on_hand, qty)

        sale = Sale(
            client_id=client_id,
            product_id=product_id,
            salesperson_id=salesperson.id if salesperson else None,
            qty=qty,
            unit_price=unit_price,
            total=Decimal(qty) * unit_price,
            sale_date=sale_date,
            note=note,
            created_by_user_id=user_id,
        )
        db.session.add(sale)
        db.session.flush()

        append_movement(
            product_id=product_id,
            movement_type=MOVEMENT_OUT,
            quantity=qty,
            movement_date=sale_date,
            note=f"Sale #{sale.id}",
            sale_id=sale.id,
            user_id=user_id,
        )
        db.session.commit()
        return sale

    return run_with_retry(_op)


def void_sale(sale_id: int, *, user_id: int | None = None) -> dict:
    """
    Delete the sale row and return its quantity to stock with ADJ(+qty).

    Returns a snapshot of the deleted sale.
    """
    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if sale is None:
            raise NotFoundError("Sale not found")

        snapshot = sale.to_dict()
        append_movement(
            product_id=sale.product_id,
            movement_type=MOVEMENT_ADJ,
            quantity=sale.qty,
            note=f"Void sale #{sale.id}",
            sale_id=sale.id,
            user_id=user_id,
        )
        db.session.delete(sale)
        db.session.commit()
        return snapshot

    return run_with_retry(_op)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def list_sales(*, client_id=None, product_id=None) -> list[Sale]:
    query = db.session.query(Sale)
    if client_id:
        query = query.filter(Sale.client_id == client_id)
    if product_id:
        query = query.filter(Sale.product_id == product_id)
    return query.order_by(Sale.sale_date.desc(), Sale.id.desc()).all()
