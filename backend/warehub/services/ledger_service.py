# Overview: Service-layer operations for the flow ledger; validation and ordered reads.

from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from ..extensions import db
from ..models import WarehouseFlow
from ..validation import ValidationError, parse_count, parse_type_name, parse_unit_price
from warehub.time_utils import utcnow
"""
Warehub Flow Ledger Invariants (authoritative)

- Append-only: WarehouseFlow rows are inserted once and never updated or
  deleted.
- Every entry has at least one item; every item has a trimmed non-blank
  typeName, an int count >= 0 and a finite unitPrice >= 0.
- created_at is assigned by the server at insert (utcnow, UTC-naive).
- Canonical order is (created_at, id). Listing is newest first; analytics
  reads oldest first.
"""


FLOW_OPERATIONS = ("load", "unload")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class FlowValidationError(ValidationError):
    """A flow request is malformed; row (1-based) is set for item problems."""


class InvalidOperation(FlowValidationError):
    pass


class EmptyItems(FlowValidationError):
    pass


class MissingTypeName(FlowValidationError):
    pass


class InvalidCount(FlowValidationError):
    pass


class InvalidUnitPrice(FlowValidationError):
    pass


def validate_flow_request(operation: Any, raw_items: Any) -> list[dict]:
    """
    Validate and normalize a load/unload request.

    Returns the cleaned items list ({"typeName", "count", "unitPrice"}).
    Stops at the first bad row.
    """
    if operation not in FLOW_OPERATIONS:
        raise InvalidOperation("operation must be 'load' or 'unload'", field="operation")

    if not isinstance(raw_items, list) or not raw_items:
        raise EmptyItems("items must be a non-empty array", field="items")

    items: list[dict] = []
    for row, raw in enumerate(raw_items, start=1):
        raw = raw if isinstance(raw, dict) else {}

        type_name = parse_type_name(raw.get("typeName"))
        if type_name is None:
            raise MissingTypeName(f"Row {row}: typeName is required", row=row, field="typeName")

        count = parse_count(raw.get("count"))
        if count is None:
            raise InvalidCount(
                f"Row {row}: count must be a non-negative integer", row=row, field="count"
            )

        unit_price = parse_unit_price(raw.get("unitPrice"))
        if unit_price is None:
            raise InvalidUnitPrice(
                f"Row {row}: unitPrice is required and must be a non-negative number",
                row=row,
                field="unitPrice",
            )

        items.append({"typeName": type_name, "count": count, "unitPrice": unit_price})

    return items


def record_flow(
    *,
    warehouse_id: int,
    operation: str,
    items: list[dict],
    performed_by: int | None = None,
) -> WarehouseFlow:
    """
    Append a ledger entry to the current unit of work.

    No domain checks beyond the entry's own shape; the caller validated the
    request and applied the projection. Does not commit.
    """
    flow = WarehouseFlow(
        warehouse_id=warehouse_id,
        operation=operation,
        items=[dict(i) for i in items],
        performed_by_user_id=performed_by,
        created_at=utcnow(),
    )
    db.session.add(flow)
    return flow


_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")


def _to_int(value: Any) -> int | None:
    # Leading integer prefix: "2.5" and "7abc" read as 2 and 7
    if value is None or isinstance(value, bool):
        return None
    match = _LEADING_INT.match(str(value))
    return int(match.group(1)) if match else None


def normalize_page(raw: Any) -> int:
    """Missing, unparseable or 0 -> 1; anything else floored at 1."""
    value = _to_int(raw)
    if not value:
        return DEFAULT_PAGE
    return max(1, value)


def normalize_limit(raw: Any) -> int:
    """Missing, unparseable or 0 -> 20; anything else clamped to [1, 100]."""
    value = _to_int(raw)
    if not value:
        return DEFAULT_LIMIT
    return min(MAX_LIMIT, max(1, value))


def list_flows(*, warehouse_id: int, page: Any = None, limit: Any = None) -> tuple[list[WarehouseFlow], int]:
    """
    Newest-first page of a warehouse's ledger.

    page/limit are normalized first; returns (entries, total).
    """
    page = normalize_page(page)
    limit = normalize_limit(limit)

    base = db.session.query(WarehouseFlow).filter(WarehouseFlow.warehouse_id == warehouse_id)
    total = base.count()
    entries = (
        base.order_by(WarehouseFlow.created_at.desc(), WarehouseFlow.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return entries, total


def list_flows_since(*, warehouse_id: int, since: datetime | None = None) -> list[WarehouseFlow]:
    """Oldest-first ledger entries with created_at >= since (inclusive)."""
    q = db.session.query(WarehouseFlow).filter(WarehouseFlow.warehouse_id == warehouse_id)
    if since is not None:
        q = q.filter(WarehouseFlow.created_at >= since)
    return q.order_by(WarehouseFlow.created_at.asc(), WarehouseFlow.id.asc()).all()
