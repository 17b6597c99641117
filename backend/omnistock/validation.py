# Overview: Request payload checks driven by SQLAlchemy column metadata.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Boolean, Integer, String, Text


# 9,999,999.99 in cents
MAX_PRICE_CENTS = 999_999_999

# 10,000% markup in basis points
MAX_MARGIN_BPS = 1_000_000

PRODUCT_CENTS_FIELDS = ("cost_price_cents", "selling_price_cents")
PRODUCT_COUNT_FIELDS = ("stock_quantity", "min_stock")


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate barcode)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Which columns a client may write, and which of them a create must carry.

    writable_fields is the security boundary: anything else in a payload is
    rejected, even when it names a real column.
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = field(default_factory=frozenset)


def coerce_int(key: str, value: Any) -> int:
    """Accept ints and plain digit strings; bools, floats, "1.0" and "1e3" are errors."""
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an integer")

    text = value.strip()
    if "." in text or "e" in text.lower():
        raise ValidationError(f"{key} must be a plain integer")
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"{key} must be an integer")


def _coerce(column, value: Any):
    if isinstance(column.type, Integer):
        return coerce_int(column.key, value)
    if isinstance(column.type, Boolean):
        if not isinstance(value, bool):
            raise ValidationError(f"{column.key} must be a boolean")
        return value
    if isinstance(column.type, (String, Text)):
        if isinstance(value, (dict, list)):
            raise ValidationError(f"{column.key} must be a string")
        text = str(value).strip()
        limit = getattr(column.type, "length", None)
        if limit and len(text) > limit:
            raise ValidationError(f"{column.key} exceeds max length {limit}")
        return text
    return value


def validate_payload(*, model, payload: Any, policy: ModelValidationPolicy, partial: bool) -> dict:
    """
    Turn a JSON body into a clean patch for `model`.

    With partial=False every required_on_create field must be present and
    non-blank. Keys outside the policy are rejected. A null is accepted only
    for nullable columns or columns with a default; services decide what it
    means (a null selling price falls back to the suggested price).
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(name for name in policy.required_on_create if payload.get(name) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    columns = {c.key: c for c in model.__mapper__.columns}
    patch: dict = {}

    for key, raw in payload.items():
        if key not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {key}")
        column = columns.get(key)
        if column is None:
            raise ValidationError(f"Unknown field: {key}")

        if raw is None:
            if not column.nullable and column.default is None:
                raise ValidationError(f"{key} cannot be null")
            patch[key] = None
            continue

        value = _coerce(column, raw)
        if value == "" and key in policy.required_on_create:
            raise ValidationError(f"{key} cannot be blank")
        patch[key] = value

    return patch


def enforce_rules_product(patch: dict) -> None:
    """Range checks on product numbers that column types cannot express."""
    for name in PRODUCT_CENTS_FIELDS:
        cents = patch.get(name)
        if cents is not None and not 0 <= cents <= MAX_PRICE_CENTS:
            raise ValidationError(f"{name} must be between 0 and {MAX_PRICE_CENTS}")

    margin = patch.get("margin_bps")
    if margin is not None and not 0 <= margin <= MAX_MARGIN_BPS:
        raise ValidationError(f"margin_bps must be between 0 and {MAX_MARGIN_BPS}")

    for name in PRODUCT_COUNT_FIELDS:
        count = patch.get(name)
        if count is not None and count < 0:
            raise ValidationError(f"{name} must be >= 0")
