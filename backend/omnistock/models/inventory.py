from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data.

    MULTI-TENANT: Products are scoped to organizations via org_id.
    Barcodes are unique within an organization, not globally.

    PRICING:
    - All money is stored in cents.
    - margin_bps is the markup over cost in basis points (4000 = 40%).
    - suggested_price_cents is derived from cost and margin and is
      recomputed by the service whenever either changes.
    - selling_price_cents is edited independently; recomputing the
      suggestion never touches it.

    STOCK: stock_quantity never goes below zero (CHECK constraint).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("org_id", "barcode", name="uq_products_org_barcode"),
        db.Index("ix_products_org_name", "org_id", "name"),
        db.CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("min_stock >= 0", name="ck_products_min_stock_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    barcode = db.Column(db.String(64), nullable=False)

    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    margin_bps = db.Column(db.Integer, nullable=False, default=0)
    suggested_price_cents = db.Column(db.Integer, nullable=False, default=0)
    selling_price_cents = db.Column(db.Integer, nullable=False, default=0)

    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=False, default="")

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    organization = db.relationship("Organization", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} barcode={self.barcode!r} name={self.name!r} org_id={self.org_id}>"

    @property
    def stock_status(self) -> str:
        if self.stock_quantity <= 0:
            return "out"
        if self.stock_quantity <= self.min_stock:
            return "low"
        return "normal"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "name": self.name,
            "category": self.category,
            "barcode": self.barcode,
            "cost_price_cents": self.cost_price_cents,
            "margin_bps": self.margin_bps,
            "suggested_price_cents": self.suggested_price_cents,
            "selling_price_cents": self.selling_price_cents,
            "stock_quantity": self.stock_quantity,
            "min_stock": self.min_stock,
            "stock_status": self.stock_status,
            "notes": self.notes,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
