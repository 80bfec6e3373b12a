from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z

# Ledger movement types
MOVEMENT_IN = "IN"
MOVEMENT_OUT = "OUT"
MOVEMENT_ADJ = "ADJ"
MOVEMENT_RETURN = "RETURN"
MOVEMENT_TYPES = (MOVEMENT_IN, MOVEMENT_OUT, MOVEMENT_ADJ, MOVEMENT_RETURN)


def _price(value):
    return float(value) if value is not None else None


class ProductCategory(db.Model):
    __tablename__ = "product_categories"
    __table_args__ = (
        db.UniqueConstraint("name", name="uq_product_categories_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)


class Product(db.Model):
    """
    Product master data.

    There is no stored quantity: on-hand is always derived from
    inventory_movements. avg_purchase_price is a denormalized aggregate
    over non-voided batches, rewritten in the same transaction as any
    batch change.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_products_code"),
        db.Index("ix_products_archived_name", "is_archived", "official_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False)
    official_name = db.Column(db.String(255), nullable=False)
    market_name = db.Column(db.String(255), nullable=True)
    category_id = db.Column(db.Integer, db.ForeignKey("product_categories.id"), nullable=True, index=True)

    default_sell_price = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    avg_purchase_price = db.Column(db.Numeric(12, 3), nullable=True)

    is_archived = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    category = db.relationship("ProductCategory", lazy="joined")
    price_tiers = db.relationship(
        "PriceTier",
        back_populates="product",
        order_by="PriceTier.min_qty",
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Product id={self.id} code={self.code!r} official_name={self.official_name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "official_name": self.official_name,
            "market_name": self.market_name,
            "category": self.category.name if self.category else None,
            "default_sell_price": _price(self.default_sell_price),
            "avg_purchase_price": _price(self.avg_purchase_price),
            "is_archived": self.is_archived,
            "price_tiers": [t.to_dict() for t in self.price_tiers],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PriceTier(db.Model):
    """Quantity break price. Independent of purchase costing."""
    __tablename__ = "product_price_tiers"
    __table_args__ = (
        db.UniqueConstraint("product_id", "min_qty", name="uq_price_tiers_product_min_qty"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    min_qty = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 3), nullable=False)

    product = db.relationship("Product", back_populates="price_tiers")

    def to_dict(self) -> dict:
        return {"min_qty": self.min_qty, "unit_price": _price(self.unit_price)}


class Batch(db.Model):
    """
    One physical receipt of a product lot.

    At most one active (voided_at IS NULL) row per (product_id, lot_number);
    a repeat receipt of the lot is merged into it. Batches are never deleted.
    """
    __tablename__ = "batches"
    __table_args__ = (
        db.Index(
            "uq_batches_active_lot",
            "product_id",
            "lot_number",
            unique=True,
            sqlite_where=db.text("voided_at IS NULL"),
            postgresql_where=db.text("voided_at IS NULL"),
        ),
        db.Index("ix_batches_product_purchase", "product_id", "purchase_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    lot_number = db.Column(db.String(64), nullable=False)

    purchase_date = db.Column(db.Date, nullable=False)
    expiry_date = db.Column(db.Date, nullable=True)

    purchase_price = db.Column(db.Numeric(12, 3), nullable=False)
    qty_received = db.Column(db.Integer, nullable=False)

    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=True, index=True)
    supplier_name = db.Column(db.String(255), nullable=True)
    supplier_invoice_no = db.Column(db.String(64), nullable=True)

    is_void = db.Column(db.Boolean, nullable=False, default=False)
    voided_at = db.Column(db.DateTime(timezone=True), nullable=True)
    voided_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    product = db.relationship("Product", backref=db.backref("batches", lazy=True))
    supplier = db.relationship("Supplier", backref=db.backref("batches", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_code": self.product.code if self.product else None,
            "official_name": self.product.official_name if self.product else None,
            "lot_number": self.lot_number,
            "purchase_date": to_iso_date(self.purchase_date),
            "expiry_date": to_iso_date(self.expiry_date),
            "purchase_price": _price(self.purchase_price),
            "qty_received": self.qty_received,
            "supplier_id": self.supplier_id,
            "supplier_name": self.supplier_name,
            "supplier_invoice_no": self.supplier_invoice_no,
            "is_void": self.is_void,
            "voided_at": to_utc_z(self.voided_at),
            "created_at": to_utc_z(self.created_at),
        }


class InventoryMovement(db.Model):
    """
    Append-only stock ledger.

    IN/RETURN/ADJ quantities are signed as stored; OUT is stored positive
    and subtracted. Rows are never updated or deleted.
    """
    __tablename__ = "inventory_movements"
    __table_args__ = (
        db.CheckConstraint(
            "movement_type IN ('IN', 'OUT', 'ADJ', 'RETURN')",
            name="movement_type",
        ),
        db.CheckConstraint("movement_type <> 'OUT' OR quantity > 0", name="out_positive"),
        db.Index("ix_movements_product_date", "product_id", "movement_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    movement_type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    movement_date = db.Column(db.Date, nullable=False)
    note = db.Column(db.String(255), nullable=True)

    batch_id = db.Column(db.Integer, db.ForeignKey("batches.id"), nullable=True, index=True)
    # Plain column: the sale row is deleted on void, its ledger entries stay
    sale_id = db.Column(db.Integer, nullable=True, index=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "movement_type": self.movement_type,
            "quantity": self.quantity,
            "movement_date": to_iso_date(self.movement_date),
            "note": self.note,
            "batch_id": self.batch_id,
            "sale_id": self.sale_id,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
