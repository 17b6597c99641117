from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Sale(db.Model):
    """
    A recorded sale. Create-only: sales are never edited or deleted.

    product_id is a plain reference, not a foreign key: deleting a product
    leaves its sales untouched, and product_name keeps the name the product
    had when it was sold. unit_price_cents and seller_email are snapshots
    for the same reason.

    total_cents is computed once at registration (quantity * unit price).
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_org_created", "org_id", "created_at"),
        db.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    org_id = db.Column(db.Integer, db.ForeignKey("organizations.id"), nullable=False, index=True)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    seller_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    seller_email = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "org_id": self.org_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "seller_user_id": self.seller_user_id,
            "seller_email": self.seller_email,
            "created_at": to_utc_z(self.created_at),
        }
