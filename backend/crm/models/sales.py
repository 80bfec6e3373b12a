from __future__ import annotations

from ..extensions import db
from ..time_utils import to_iso_date, to_utc_z


class Sale(db.Model):
    """
    One product sold to one client.

    Creating a sale appends an OUT movement; voiding deletes this row and
    appends a compensating ADJ movement.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_client_date", "client_id", "sale_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    client_id = db.Column(db.Integer, db.ForeignKey("clients.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    salesperson_id = db.Column(db.Integer, db.ForeignKey("salespersons.id"), nullable=True, index=True)

    qty = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 3), nullable=False)
    total = db.Column(db.Numeric(14, 3), nullable=False)
    sale_date = db.Column(db.Date, nullable=False)
    note = db.Column(db.String(255), nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    client = db.relationship("Client", lazy="joined")
    product = db.relationship("Product", lazy="joined")
    salesperson = db.relationship("Salesperson", lazy="joined")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "client_id": self.client_id,
            "client_name": self.client.name if self.client else None,
            "product_id": self.product_id,
            "product_code": self.product.code if self.product else None,
            "product_name": self.product.official_name if self.product else None,
            "salesperson_id": self.salesperson_id,
            "salesperson_name": self.salesperson.display_name if self.salesperson else None,
            "qty": self.qty,
            "unit_price": float(self.unit_price),
            "total": float(self.total),
            "sale_date": to_iso_date(self.sale_date),
            "note": self.note,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
        }
