# Overview: Service-layer operations for products; catalogue, categories and quantity price tiers.

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Batch, PriceTier, Product, ProductCategory
from ..time_utils import to_iso_date
from ..validation import (
    ModelValidationPolicy,
    enforce_rules_product,
    require_positive_int,
    require_positive_price,
    validate_payload,
)
from .inventory_service import get_on_hand_by_product, get_product

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"code", "official_name", "market_name", "default_sell_price"},
    required_on_create={"code", "official_name"},
)

PURCHASE_FIELDS = ("avg_purchase_price", "last_purchase_price", "last_purchase_date")


def upsert_category(name) -> ProductCategory | None:
    name = str(name or "").strip()
    if not name:
        return None
    category = db.session.query(ProductCategory).filter_by(name=name).first()
    if category is None:
        category = ProductCategory(name=name)
        db.session.add(category)
        db.session.flush()
    return category


def parse_price_tiers(raw) -> list[tuple[int, object]]:
    """Validate [{min_qty, unit_price}, ...] into sorted (min_qty, Decimal) pairs."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("price_tiers must be a list")
    tiers = {}
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("price_tiers entries must be objects")
        min_qty = require_positive_int(item.get("min_qty"), "min_qty")
        unit_price = require_positive_price(item.get("unit_price"), "unit_price")
        if min_qty in tiers:
            raise ValidationError(f"Duplicate price tier for min_qty {min_qty}")
        tiers[min_qty] = unit_price
    return sorted(tiers.items())


def _replace_tiers(product: Product, tiers: list[tuple[int, object]]) -> None:
    product.price_tiers.clear()
    db.session.flush()
    for min_qty, unit_price in tiers:
        product.price_tiers.append(PriceTier(min_qty=min_qty, unit_price=unit_price))


def _last_purchases(product_ids) -> dict[int, Batch]:
    """Most recent active batch per product (purchase_date, then id)."""
    latest: dict[int, Batch] = {}
    if not product_ids:
        return latest
    rows = (
        db.session.query(Batch)
        .filter(Batch.product_id.in_(product_ids), Batch.voided_at.is_(None))
        .order_by(Batch.product_id, Batch.purchase_date.desc(), Batch.id.desc())
        .all()
    )
    for batch in rows:
        latest.setdefault(batch.product_id, batch)
    return latest


def serialize_products(products: list[Product], *, show_purchase_price: bool) -> list[dict]:
    ids = [p.id for p in products]
    on_hand = get_on_hand_by_product(ids)
    last = _last_purchases(ids)

    items = []
    for product in products:
        data = product.to_dict()
        data["on_hand"] = on_hand.get(product.id, 0)
        batch = last.get(product.id)
        data["last_purchase_price"] = float(batch.purchase_price) if batch else None
        data["last_purchase_date"] = to_iso_date(batch.purchase_date) if batch else None
        if not show_purchase_price:
            for field in PURCHASE_FIELDS:
                data[field] = None
        items.append(data)
    return items


def list_products(*, include_archived: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_archived:
        query = query.filter(Product.is_archived.is_(False))
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()


def _ensure_code_free(code: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product.id).filter(Product.code == code)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"Product code '{code}' already exists")


def create_product(payload: dict) -> Product:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    fields = {k: v for k, v in payload.items() if k not in ("category", "price_tiers")}
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)
    tiers = parse_price_tiers(payload.get("price_tiers"))

    _ensure_code_free(patch["code"])
    product = Product(**patch)
    product.category = upsert_category(payload.get("category"))
    db.session.add(product)
    db.session.flush()
    _replace_tiers(product, tiers)

    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(f"Product code '{patch['code']}' already exists")
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """Partial update; `price_tiers`, when present, replaces the whole set."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    product = get_product(product_id)

    fields = {k: v for k, v in payload.items() if k not in ("category", "price_tiers")}
    patch = validate_payload(model=Product, payload=fields, policy=PRODUCT_POLICY, partial=True)
    enforce_rules_product(patch)
    tiers = parse_price_tiers(payload["price_tiers"]) if "price_tiers" in payload else None

    if "code" in patch:
        _ensure_code_free(patch["code"], exclude_id=product.id)
    for key, value in patch.items():
        setattr(product, key, value)
    if "category" in payload:
        product.category = upsert_category(payload.get("category"))
    if tiers is not None:
        _replace_tiers(product, tiers)

    db.session.commit()
    return product


def set_archived(product_id: int, archived: bool) -> Product:
    product = get_product(product_id)
    product.is_archived = archived
    db.session.commit()
    return product


def replace_price_tiers(product_id: int, raw_tiers) -> Product:
    product = get_product(product_id)
    _replace_tiers(product, parse_price_tiers(raw_tiers))
    db.session.commit()
    return product


def delete_price_tier(product_id: int, min_qty: int) -> None:
    get_product(product_id)
    tier = db.session.query(PriceTier).filter_by(product_id=product_id, min_qty=min_qty).first()
    if tier is None:
        raise NotFoundError("Price tier not found")
    db.session.delete(tier)
    db.session.commit()
