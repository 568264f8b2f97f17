from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Float, String, Text
from sqlalchemy.orm import DeclarativeMeta


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, *, row: int | None = None, field: str | None = None):
        super().__init__(message)
        self.row = row
        self.field = field

    def to_dict(self) -> dict:
        body: dict[str, Any] = {"error": str(self)}
        if self.row is not None:
            body["row"] = self.row
        if self.field is not None:
            body["field"] = self.field
        return body


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate email)."""


# ---------------------------------------------------------------------------
# Field parsers
#
# One parser per inbound field, shared by flow creation, CSV import and
# inventory replacement. Each returns the normalized value or None when the
# input is unusable; callers attach the row/field context to the error.
# ---------------------------------------------------------------------------

def parse_type_name(value: Any) -> str | None:
    """Trimmed, non-blank type name or None."""
    if value is None:
        return None
    name = str(value).strip()
    return name or None


def parse_count(value: Any) -> int | None:
    """
    Non-negative integer count or None.

    Accepts native ints, integral floats (JSON `3.0`) and plain digit strings.
    Rejects bools, decimals, scientific notation, negatives and NaN.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer() or value < 0:
            return None
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not (stripped.isascii() and stripped.isdecimal()):
            return None
        return int(stripped)
    return None


def parse_unit_price(value: Any) -> float | None:
    """Non-negative finite number or None. Numeric strings are accepted."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        price = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return None
        try:
            price = float(stripped)
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def parse_coordinates(value: Any) -> tuple[float, float]:
    """
    Parse wire coordinates `[lng, lat]` into `(lat, lng)`.

    Both must be finite numbers (bools rejected).
    """
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValidationError("Coordinates must be an array of [lng, lat]", field="coordinates")
    lng, lat = value
    for v in (lng, lat):
        if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
            raise ValidationError("Coordinates must be numbers", field="coordinates")
    return float(lat), float(lng)


# ---------------------------------------------------------------------------
# Column-driven payload validation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    if isinstance(coltype, Float):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"{col.key} must be a number", field=col.key)
        return float(value)

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


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

    Keys outside the allowlist are ignored rather than rejected; the web
    client sends whole form objects back on update.
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
    patch: dict = {}

    for k in sorted(policy.writable_fields):
        if k not in payload or k not in cols:
            continue
        raw = payload[k]
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null", field=k)
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable and col.default is None:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank", field=k)

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}", field=k)

        patch[k] = val

    return patch
