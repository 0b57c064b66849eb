from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

STOCK_LOCATIONS = ("store", "warehouse", "display")


class ValidationError(ValueError):
    """400-level input problem (missing name/price, empty cart, bad amount)."""


class NotFoundError(LookupError):
    """404-level lookup miss (sku or id). Callers decide whether it is fatal."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - extra_fields: non-column keys the service understands (e.g. stock_details)
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore
    extra_fields: set[str] | None = None


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def to_int(value: Any, field: str) -> int:
    """Strict integer coercion: rejects floats, decimals and scientific notation."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    raise ValidationError(f"{field} must be an integer")


def amount_to_cents(value: Any) -> int | None:
    """
    Loose decimal-amount parsing for file rows ("12.50", 12.5, "$1,200").
    Blank -> None. Unparseable -> ValidationError.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        return None
    try:
        return int((Decimal(text) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value!r}")


def cents_to_amount(cents: int | None) -> float:
    """Inverse of amount_to_cents for exports (2 decimal places)."""
    if cents is None:
        return 0.0
    return float((Decimal(cents) / 100).quantize(Decimal("0.01")))


def row_int(value: Any) -> int:
    """Loose integer parsing for file rows; blank counts as 0."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    text = str(value).strip()
    if not text:
        return 0
    try:
        return int(float(text))
    except ValueError:
        raise ValidationError(f"Invalid quantity: {value!r}")


def row_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def coerce_stock_details(raw: Any, *, allow_negative: bool = False) -> dict[str, int] | None:
    """
    Normalize a location breakdown {store, warehouse, display}.
    Missing buckets count as 0; every bucket must be an integer.

    allow_negative=False (manual entry): buckets must be >= 0.
    allow_negative=True (file re-import): oversold counts are kept as exported.
    """
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ValidationError("stock_details must be an object")
    unknown = set(raw.keys()) - set(STOCK_LOCATIONS)
    if unknown:
        raise ValidationError(f"Unknown stock location: {', '.join(sorted(unknown))}")
    details = {}
    for location in STOCK_LOCATIONS:
        value = raw.get(location)
        qty = 0 if value is None else to_int(value, f"stock_details.{location}")
        if qty < 0 and not allow_negative:
            raise ValidationError(f"stock_details.{location} must be >= 0")
        details[location] = qty
    return details


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields + extra_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) in (None, ""))
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    extra = policy.extra_fields or set()

    for k in payload.keys():
        if k in extra:
            continue
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        if k in extra:
            patch[k] = raw
            continue

        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        if isinstance(col.type, Integer):
            val = to_int(raw, k)
        elif isinstance(col.type, (String, Text)):
            val = str(raw).strip()
        else:
            val = raw

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "" and k != "sku":
                raise ValidationError(f"{k} cannot be blank")

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by SQLAlchemy metadata alone.
    Keep these small and centralized.
    """
    if "price_cents" in patch and patch["price_cents"] is not None:
        price = patch["price_cents"]
        if not isinstance(price, int) or isinstance(price, bool):
            raise ValidationError("price_cents must be an integer")
        if price < 0:
            raise ValidationError("price_cents must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"price_cents cannot exceed {MAX_PRICE_CENTS} ({MAX_PRICE_CENTS / 100:,.2f})")

    # Negative totals only come from oversold sales, never from manual entry
    if patch.get("stock") is not None and patch["stock"] < 0:
        raise ValidationError("stock must be >= 0")

    if "stock_details" in patch:
        patch["stock_details"] = coerce_stock_details(patch["stock_details"])
