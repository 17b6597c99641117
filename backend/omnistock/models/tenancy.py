from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Organization(db.Model):
    """
    Multi-tenant root: every tenant is an Organization.

    Users join a tenant by its short `code` (e.g. "OMNI-DEMO", "ORG-7K2Q9Z").
    Products, sales and users all carry org_id; no data may cross
    organization boundaries.
    """
    __tablename__ = "organizations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False, unique=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Organization id={self.id} code={self.code!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
