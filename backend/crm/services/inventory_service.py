# Overview: Service-layer operations for inventory; ledger-derived stock, batch costing and compensating entries.

"""
Inventory Invariants (authoritative)

Inventory model:
- On-hand is derived from inventory_movements and never stored.
  IN/RETURN/ADJ contribute their stored (signed) quantity; OUT is stored
  positive and subtracted. No rows -> 0.
- Movements are append-only. Corrections are new ADJ rows, never edits.

Batch costing:
- Product.avg_purchase_price = sum(qty_received * purchase_price) / sum(qty_received)
  over non-voided batches, NULL when there are none. It is recomputed in
  the same transaction as every batch insert, merge and void.
- At most one active batch per (product_id, lot_number). A repeat receipt
  merges: quantities add, price becomes the quantity-weighted average,
  purchase date follows BATCH_MERGE_DATE_POLICY, expiry and supplier
  fields are first-write-wins.
- Voiding appends ADJ(-qty_received), stamps voided_at and is refused when
  on-hand is below the batch quantity.

Time semantics:
- Movement, purchase and expiry dates are calendar dates (YYYY-MM-DD).
- Audit timestamps are UTC-naive.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Batch, InventoryMovement, Product, Supplier
from ..models.inventory import (
    MOVEMENT_ADJ,
    MOVEMENT_IN,
    MOVEMENT_OUT,
    MOVEMENT_RETURN,
    MOVEMENT_TYPES,
)
from ..time_utils import utc_today, utcnow
from ..validation import (
    PRICE_QUANT,
    coerce_date,
    coerce_int,
    optional_text,
    require_id,
    require_positive_int,
    require_positive_price,
)
from .concurrency import lock_for_update, run_with_retry

EXPIRY_EXPIRED = "EXPIRED"
EXPIRY_SOON = "EXPIRING_SOON"
EXPIRY_GOOD = "GOOD"
EXPIRY_NONE = "NO_EXPIRY"


def signed_quantity():
    """SQL expression for one movement's contribution to on-hand."""
    qty = InventoryMovement.quantity
    kind = InventoryMovement.movement_type
    return case(
        (kind.in_((MOVEMENT_IN, MOVEMENT_RETURN, MOVEMENT_ADJ)), qty),
        (kind == MOVEMENT_OUT, -qty),
        else_=0,
    )


def get_on_hand(product_id: int, as_of: date | None = None) -> int:
    """Signed sum over the product's ledger. Always recomputed, never cached."""
    q = db.session.query(func.coalesce(func.sum(signed_quantity()), 0)).filter(
        InventoryMovement.product_id == product_id
    )
    if as_of is not None:
        q = q.filter(InventoryMovement.movement_date <= as_of)
    return int(q.scalar() or 0)


def get_on_hand_by_product(product_ids=None) -> dict[int, int]:
    """On-hand for many products in one grouped query. Missing products are 0."""
    q = db.session.query(
        InventoryMovement.product_id,
        func.coalesce(func.sum(signed_quantity()), 0),
    ).group_by(InventoryMovement.product_id)
    if product_ids is not None:
        ids = list(product_ids)
        if not ids:
            return {}
        q = q.filter(InventoryMovement.product_id.in_(ids))
    return {pid: int(total or 0) for pid, total in q.all()}


def _weighted_average(pairs) -> Decimal | None:
    total_qty = 0
    total_value = Decimal("0")
    for qty, price in pairs:
        total_qty += qty
        total_value += Decimal(qty) * Decimal(str(price))
    if total_qty == 0:
        return None
    return (total_value / Decimal(total_qty)).quantize(PRICE_QUANT, rounding=ROUND_HALF_UP)


def recompute_average_purchase_price(product_id: int) -> Decimal | None:
    """
    Rewrite Product.avg_purchase_price from the non-voided batches.

    Flushes only; the caller owns the transaction.
    """
    rows = db.session.query(Batch.qty_received, Batch.purchase_price).filter(
        Batch.product_id == product_id,
        Batch.voided_at.is_(None),
    ).all()
    avg = _weighted_average(rows)

    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found")
    product.avg_purchase_price = avg
    db.session.flush()
    return avg


def append_movement(
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    movement_date: date | None = None,
    note: str | None = None,
    batch_id: int | None = None,
    sale_id: int | None = None,
    user_id: int | None = None,
) -> InventoryMovement:
    """Add one ledger row. Flushes only; the caller owns the transaction."""
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"movement_type must be one of {', '.join(MOVEMENT_TYPES)}")
    if movement_type == MOVEMENT_OUT and quantity <= 0:
        raise ValidationError("OUT quantity must be > 0")
    if quantity == 0:
        raise ValidationError("quantity must be non-zero")

    movement = InventoryMovement(
        product_id=product_id,
        movement_type=movement_type,
        quantity=quantity,
        movement_date=movement_date or utc_today(),
        note=note,
        batch_id=batch_id,
        sale_id=sale_id,
        created_by_user_id=user_id,
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def get_product(product_id: int, *, lock: bool = False, require_active: bool = False) -> Product:
    query = db.session.query(Product).filter_by(id=product_id)
    if lock:
        query = lock_for_update(query)
    product = query.first()
    if product is None:
        raise NotFoundError("Product not found")
    if require_active and product.is_archived:
        raise ConflictError("Product is archived")
    return product


def compute_expiry_status(expiry_date: date | None, today: date | None = None, soon_days: int | None = None) -> str:
    if expiry_date is None:
        return EXPIRY_NONE
    today = today or utc_today()
    if soon_days is None:
        soon_days = current_app.config.get("EXPIRING_SOON_DAYS", 90)
    days_left = (expiry_date - today).days
    if days_left < 0:
        return EXPIRY_EXPIRED
    if days_left <= soon_days:
        return EXPIRY_SOON
    return EXPIRY_GOOD


def _merge_purchase_date(current: date, incoming: date) -> date:
    policy = current_app.config.get("BATCH_MERGE_DATE_POLICY", "earliest")
    if policy == "latest":
        return max(current, incoming)
    return min(current, incoming)


def receive_batch(
    *,
    product_id,
    lot_number,
    purchase_date,
    purchase_price,
    qty_received,
    expiry_date=None,
    supplier_id=None,
    supplier_name=None,
    supplier_invoice_no=None,
    user_id: int | None = None,
) -> tuple[Batch, bool]:
    """
    Receive stock for a lot: merge into the active batch or create one.

    Returns (batch, merged). Every input is validated before the first
    write. The batch change, the IN movement and the average-price
    recompute commit together.
    """
    product_id = require_id(product_id, "product_id")
    lot_number = optional_text(lot_number, 64, "lot_number")
    if not lot_number:
        raise ValidationError("lot_number is required")
    purchase_date = coerce_date(purchase_date, "purchase_date")
    expiry_date = coerce_date(expiry_date, "expiry_date") if expiry_date not in (None, "") else None
    purchase_price = require_positive_price(purchase_price, "purchase_price")
    qty_received = require_positive_int(qty_received, "qty_received")
    supplier_id = require_id(supplier_id, "supplier_id") if supplier_id not in (None, "") else None
    supplier_name = optional_text(supplier_name, 255, "supplier_name")
    supplier_invoice_no = optional_text(supplier_invoice_no, 64, "supplier_invoice_no")

    def _op():
        get_product(product_id, lock=True, require_active=True)

        name = supplier_name
        if supplier_id is not None:
            supplier = db.session.get(Supplier, supplier_id)
            if supplier is None:
                raise NotFoundError("Supplier not found")
            name = name or supplier.business_name

        existing = lock_for_update(
            db.session.query(Batch).filter(
                Batch.product_id == product_id,
                Batch.lot_number == lot_number,
                Batch.voided_at.is_(None),
            ).order_by(Batch.id.desc())
        ).first()

        if existing is not None:
            old_qty = existing.qty_received
            existing.purchase_price = _weighted_average(
                [(old_qty, existing.purchase_price), (qty_received, purchase_price)]
            )
            existing.qty_received = old_qty + qty_received
            existing.purchase_date = _merge_purchase_date(existing.purchase_date, purchase_date)
            # First write wins for the optional attributes
            if existing.expiry_date is None:
                existing.expiry_date = expiry_date
            if existing.supplier_id is None:
                existing.supplier_id = supplier_id
            if existing.supplier_name is None:
                existing.supplier_name = name
            if existing.supplier_invoice_no is None:
                existing.supplier_invoice_no = supplier_invoice_no
            batch = existing
            merged = True
        else:
            batch = Batch(
                product_id=product_id,
                lot_number=lot_number,
                purchase_date=purchase_date,
                expiry_date=expiry_date,
                purchase_price=purchase_price,
                qty_received=qty_received,
                supplier_id=supplier_id,
                supplier_name=name,
                supplier_invoice_no=supplier_invoice_no,
                created_by_user_id=user_id,
            )
            db.session.add(batch)
            merged = False
        db.session.flush()

        append_movement(
            product_id=product_id,
            movement_type=MOVEMENT_IN,
            quantity=qty_received,
            movement_date=purchase_date,
            note=f"Receive lot {lot_number}",
            batch_id=batch.id,
            user_id=user_id,
        )
        recompute_average_purchase_price(product_id)
        db.session.commit()
        return batch, merged

    # A racing insert of the same active lot trips the partial unique index;
    # the retry then finds that row and merges into it.
    return run_with_retry(_op, retry_on=(IntegrityError,))


def void_batch(batch_id: int, *, user_id: int | None = None) -> Batch:
    """
    Void a batch with a compensating ADJ(-qty_received).

    Refused (no mutation) when the batch is already void or when on-hand
    is below the batch quantity; use an adjustment in that case.
    """
    def _op():
        batch = lock_for_update(db.session.query(Batch).filter_by(id=batch_id)).first()
        if batch is None:
            raise NotFoundError("Batch not found")
        if batch.voided_at is not None:
            raise ConflictError("Batch is already voided")

        get_product(batch.product_id, lock=True)
        on_hand = get_on_hand(batch.product_id)
        if on_hand < batch.qty_received:
            raise ConflictError(
                "Cannot void batch: on-hand quantity is below the batch quantity. Use an adjustment instead.",
                details={"on_hand": on_hand, "qty_received": batch.qty_received},
            )

        append_movement(
            product_id=batch.product_id,
            movement_type=MOVEMENT_ADJ,
            quantity=-batch.qty_received,
            note=f"Void batch {batch.id} (lot {batch.lot_number})",
            batch_id=batch.id,
            user_id=user_id,
        )
        batch.is_void = True
        batch.voided_at = utcnow()
        batch.voided_by_user_id = user_id
        db.session.flush()

        recompute_average_purchase_price(batch.product_id)
        db.session.commit()
        return batch

    return run_with_retry(_op)


def adjust_inventory(*, product_id, quantity, movement_date=None, note=None, user_id: int | None = None) -> InventoryMovement:
    """Manual ADJ entry. A negative adjustment may not take on-hand below zero."""
    product_id = require_id(product_id, "product_id")
    if quantity is None or quantity == "":
        raise ValidationError("quantity is required")
    quantity = coerce_int(quantity, "quantity")
    if quantity == 0:
        raise ValidationError("quantity must be non-zero")
    movement_date = coerce_date(movement_date, "movement_date") if movement_date else None
    note = optional_text(note, 255, "note")

    def _op():
        get_product(product_id, lock=True)
        if quantity < 0:
            on_hand = get_on_hand(product_id)
            if on_hand + quantity < 0:
                raise ConflictError(
                    "Adjustment would make on-hand negative",
                    details={"on_hand": on_hand, "requested": quantity},
                )
        movement = append_movement(
            product_id=product_id,
            movement_type=MOVEMENT_ADJ,
            quantity=quantity,
            movement_date=movement_date,
            note=note or "Manual adjustment",
            user_id=user_id,
        )
        db.session.commit()
        return movement

    return run_with_retry(_op)


def record_return(*, product_id, quantity, movement_date=None, note=None, user_id: int | None = None) -> InventoryMovement:
    """Customer return back into stock (RETURN, positive)."""
    product_id = require_id(product_id, "product_id")
    quantity = require_positive_int(quantity, "quantity")
    movement_date = coerce_date(movement_date, "movement_date") if movement_date else None
    note = optional_text(note, 255, "note")

    def _op():
        get_product(product_id, lock=True)
        movement = append_movement(
            product_id=product_id,
            movement_type=MOVEMENT_RETURN,
            quantity=quantity,
            movement_date=movement_date,
            note=note or "Customer return",
            user_id=user_id,
        )
        db.session.commit()
        return movement

    return run_with_retry(_op)


def list_movements(product_id: int, limit: int = 200) -> list[InventoryMovement]:
    get_product(product_id)
    return (
        db.session.query(InventoryMovement)
        .filter(InventoryMovement.product_id == product_id)
        .order_by(InventoryMovement.movement_date.desc(), InventoryMovement.id.desc())
        .limit(limit)
        .all()
    )


def list_batches(product_id: int | None = None, include_voided: bool = False) -> list[Batch]:
    query = db.session.query(Batch)
    if product_id:
        query = query.filter(Batch.product_id == product_id)
    if not include_voided:
        query = query.filter(Batch.voided_at.is_(None))
    return query.order_by(Batch.purchase_date.desc(), Batch.id.desc()).all()


def batch_to_dict(batch: Batch, *, show_purchase_price: bool) -> dict:
    data = batch.to_dict()
    data["expiry_status"] = compute_expiry_status(batch.expiry_date)
    if not show_purchase_price:
        data["purchase_price"] = None
    return data


def recompute_all_costs(product_id: int | None = None) -> int:
    """Rebuild avg_purchase_price for one or all products. Returns products touched."""
    query = db.session.query(Product.id)
    if product_id is not None:
        query = query.filter(Product.id == product_id)
    ids = [pid for (pid,) in query.all()]
    for pid in ids:
        recompute_average_purchase_price(pid)
    db.session.commit()
    return len(ids)
