from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeMeta

from .errors import ValidationError


# Upper bound for any single money amount or quantity, in minor units.
# Keeps values inside a signed 32-bit column on every backend.
MAX_AMOUNT = 999_999_999

SALE_AMOUNT_FIELDS = ("subtotal", "total_cost", "discount", "extra_fee", "payment_amount")

# camelCase spellings sent by the register frontend
FIELD_ALIASES = {
    "totalCost": "total_cost",
    "extraFee": "extra_fee",
    "paymentAmount": "payment_amount",
    "productId": "product_id",
    "quantity": "qty",
    "oldPassword": "old_password",
    "newPassword": "new_password",
}


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    - non_negative_fields: integer columns that must be >= 0
    """
    writable_fields: set[str]
    required_on_create: set[str] = field(default_factory=set)
    non_negative_fields: set[str] = field(default_factory=set)


def normalize_keys(payload: dict) -> dict:
    """Map accepted camelCase keys onto their snake_case names."""
    normalized = {}
    for key, value in payload.items():
        target = FIELD_ALIASES.get(key, key)
        if target in normalized and target != key:
            # snake_case spelling wins when both are sent
            continue
        normalized[target] = value
    return normalized


def strict_int(value: Any, name: str) -> int:
    """
    Coerce to int, rejecting floats, bools and scientific notation.

    Plain digit strings ("42", "-3") are accepted.
    """
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{name} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{name} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{name} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{name} must be an integer") from None
    if isinstance(value, float):
        raise ValidationError(f"{name} must be an integer, not a decimal")
    raise ValidationError(f"{name} must be an integer")


def amount(value: Any, name: str) -> int:
    """Non-negative integer money/quantity field."""
    val = strict_int(value, name)
    if val < 0:
        raise ValidationError(f"{name} must be >= 0")
    if val > MAX_AMOUNT:
        raise ValidationError(f"{name} cannot exceed {MAX_AMOUNT}")
    return val


def record_id(value: Any, name: str) -> int:
    """Primary key from client input: 1..MAX_AMOUNT."""
    val = strict_int(value, name)
    if val < 1 or val > MAX_AMOUNT:
        raise ValidationError(f"{name} must be between 1 and {MAX_AMOUNT}")
    return val


def is_record_id(value: Any) -> bool:
    """True for ints the database can hold as a primary key."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_AMOUNT


def required_strings(payload: Any, names: tuple[str, ...]) -> tuple[str, ...]:
    """
    Pull non-blank string fields out of a JSON object body.

    Raises ValidationError for a non-object body, or a field that is missing,
    blank or not a string.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    missing = [n for n in names if not isinstance(payload.get(n), str) or not payload[n]]
    if missing:
        raise ValidationError(
            f"{' and '.join(names)} required as non-empty strings",
            details={"fields": missing},
        )
    return tuple(payload[n] for n in names)


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


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
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)
    patch: dict = {}

    for k, raw in payload.items():
        if k not in policy.writable_fields or k not in cols:
            raise ValidationError(f"Field not allowed: {k}")
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        if isinstance(col.type, Integer):
            val = amount(raw, k) if k in policy.non_negative_fields else strict_int(raw, k)
        elif isinstance(col.type, (String, Text)):
            val = str(raw).strip()
            if k in policy.required_on_create and val == "":
                raise ValidationError(f"{k} cannot be blank")
            if isinstance(col.type, String) and col.type.length and len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")
        else:
            val = raw

        patch[k] = val

    return patch


@dataclass(frozen=True)
class SaleLineRequest:
    product_id: int
    qty: int


@dataclass(frozen=True)
class SaleRequest:
    """A checkout request after shape and range checks.

    Amounts are None when the caller did not send them.
    """
    lines: tuple[SaleLineRequest, ...]
    subtotal: int | None = None
    total_cost: int | None = None
    discount: int | None = None
    extra_fee: int | None = None
    payment_amount: int | None = None


def parse_sale_request(payload: Any) -> SaleRequest:
    """
    Validate a checkout body.

    Raises ValidationError on negative or non-integer amounts, an empty or
    malformed items list, or a non-positive quantity.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = normalize_keys(payload)

    amounts = {}
    for name in SALE_AMOUNT_FIELDS:
        raw = payload.get(name)
        amounts[name] = None if raw is None else amount(raw, name)

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("items must be a non-empty list")

    lines = []
    for index, raw_item in enumerate(items):
        if not isinstance(raw_item, dict):
            raise ValidationError("each item must be an object", details={"index": index})
        item = normalize_keys(raw_item)

        if item.get("product_id") is None:
            raise ValidationError("item is missing product_id", details={"index": index})
        product_id = record_id(item["product_id"], f"items[{index}].product_id")

        if item.get("qty") is None:
            raise ValidationError("item is missing qty", details={"index": index})
        qty = amount(item["qty"], f"items[{index}].qty")
        if qty <= 0:
            raise ValidationError(f"items[{index}].qty must be > 0", details={"index": index})

        lines.append(SaleLineRequest(product_id=product_id, qty=qty))

    return SaleRequest(lines=tuple(lines), **amounts)
