"""
Multi-Tenant Service: the storage-side tenant boundary.

WHY: Every tenant's products, sales and users live in the same tables.
Filtering by organization at each call site means one forgotten filter leaks
another tenant's data. TenantScope binds an org_id once and is the only
way services reach tenant-owned rows:

    scope = TenantScope(org_id)
    scope.query(Product)           # always filtered by org_id
    scope.get(Product, product_id) # foreign ids look "not found"
    scope.add(Product(...))        # org_id stamped on the row

SECURITY INVARIANTS:
1. Every authenticated request has g.tenant (a TenantScope) set
2. Ids from client input are resolved through scope.get()
3. Cross-tenant lookups are logged as security events and reported as
   "not found" so they do not reveal that the row exists elsewhere
"""

from __future__ import annotations

from flask import g, has_request_context, request

from ..extensions import db
from ..models import Organization, Product, Sale, User
from .concurrency import lock_for_update
from .permission_service import log_security_event

# Models whose rows belong to exactly one organization via org_id
TENANT_MODELS = (Product, Sale, User)


class TenantAccessError(Exception):
    """Raised when a row is missing from the tenant or cross-tenant access is attempted."""


class TenantScope:
    """Query and mutation gateway bound to a single organization."""

    def __init__(self, org_id: int):
        if org_id is None:
            raise TenantAccessError("Tenant context not established")
        self.org_id = org_id

    def __repr__(self) -> str:
        return f"<TenantScope org_id={self.org_id}>"

    @staticmethod
    def _check_model(model) -> None:
        if model not in TENANT_MODELS:
            raise TypeError(f"{model.__name__} is not a tenant-owned model")

    @property
    def organization(self) -> Organization:
        return db.session.get(Organization, self.org_id)

    def query(self, model):
        """Base query for a tenant-owned model, filtered to this organization."""
        self._check_model(model)
        return db.session.query(model).filter(model.org_id == self.org_id)

    def get(self, model, row_id: int, *, lock: bool = False):
        """
        Resolve an id inside the tenant.

        Raises TenantAccessError if the row does not exist or belongs to
        another organization (the latter is logged).
        """
        self._check_model(model)
        query = db.session.query(model).filter(model.id == row_id)
        if lock:
            query = lock_for_update(query)
        row = query.first()

        if row is None:
            raise TenantAccessError(f"{model.__name__} not found")

        if row.org_id != self.org_id:
            _log_cross_tenant_attempt(
                f"{model.__name__} {row_id} belongs to org {row.org_id}, not {self.org_id}",
                org_id=self.org_id,
            )
            raise TenantAccessError(f"{model.__name__} not found")

        return row

    def add(self, row):
        """Stage a new tenant-owned row, stamping this organization on it."""
        self._check_model(type(row))
        if row.org_id is not None and row.org_id != self.org_id:
            raise TenantAccessError("Row belongs to a different organization")
        row.org_id = self.org_id
        db.session.add(row)
        return row


def get_org_by_code(code: str) -> Organization | None:
    normalized = (code or "").strip().upper()
    if not normalized:
        return None
    return db.session.query(Organization).filter_by(code=normalized).first()


def _log_cross_tenant_attempt(reason: str, org_id: int | None = None) -> None:
    """Log a cross-tenant access attempt as a security event."""
    user = getattr(g, "current_user", None) if has_request_context() else None
    in_request = has_request_context()

    log_security_event(
        user_id=user.id if user is not None else None,
        event_type="CROSS_TENANT_ACCESS_DENIED",
        success=False,
        resource=request.path if in_request else None,
        action=request.method if in_request else None,
        reason=reason,
        ip_address=request.remote_addr if in_request else None,
        user_agent=request.headers.get("User-Agent") if in_request else None,
        org_id=org_id,
    )
