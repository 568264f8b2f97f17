# Overview: Inventory projection rules; pure functions over inventory lists.

from __future__ import annotations

import csv
import io
from typing import Any, Iterable

from ..validation import ValidationError, parse_count, parse_type_name
"""
Warehub Inventory Projection Invariants (authoritative)

Inventory model:
- A warehouse's inventory is an ordered list of {"typeName", "count"}.
- typeName is unique within the list; count is an int >= 0.
- The list is a projection of the WarehouseFlow ledger: loads add, unloads
  subtract. An unload that leaves a type at zero (or below) removes it.
- New types are appended; surviving types keep their position.

Business invariants:
- Stock never goes negative. An unload batch is validated in full before
  anything is applied; one short item rejects the whole batch.
- CSV import is additive (existing + csv), not a replacement, and is not
  ledgered. Re-importing the same file doubles the counts.

Everything here is pure: callers own loading and persisting the warehouse.
"""


TYPE_COLUMN_ALIASES = ("type", "typename")
COUNT_COLUMN_ALIASES = ("count", "quantity")


class InsufficientStockError(ValueError):
    """Unload requested more units of a type than are in stock."""

    def __init__(self, type_name: str, available: int, requested: int, lines: int = 1):
        message = f'Insufficient quantity for type "{type_name}": have {available}, requested {requested}'
        if lines > 1:
            message += f" (total across {lines} lines)"
        super().__init__(message)
        self.type_name = type_name
        self.available = available
        self.requested = requested

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "typeName": self.type_name,
            "available": self.available,
            "requested": self.requested,
        }


class CsvImportError(ValidationError):
    """Raised when an inventory CSV cannot be parsed or merged."""


class MissingColumnsError(CsvImportError):
    """Raised when the CSV header has no usable type or count column."""


def _as_map(inventory: Iterable[dict] | None) -> dict[str, int]:
    return {str(i["typeName"]): int(i["count"]) for i in (inventory or [])}


def _as_list(stock: dict[str, int]) -> list[dict]:
    return [{"typeName": name, "count": count} for name, count in stock.items()]


def apply_flow(current_inventory: list[dict] | None, operation: str, items: list[dict]) -> list[dict]:
    """
    Apply a validated load/unload batch to an inventory and return the new list.

    Raises InsufficientStockError (before any change) if an unload item
    exceeds what is on hand. Items are expected to come from
    ledger_service.validate_flow_request.
    """
    stock = _as_map(current_inventory)

    if operation == "unload":
        # Lines repeating a type draw on the same stock
        requested: dict[str, int] = {}
        lines: dict[str, int] = {}
        for item in items:
            requested[item["typeName"]] = requested.get(item["typeName"], 0) + item["count"]
            lines[item["typeName"]] = lines.get(item["typeName"], 0) + 1
        for type_name, count in requested.items():
            available = stock.get(type_name, 0)
            if available < count:
                raise InsufficientStockError(type_name, available, count, lines[type_name])

    if operation == "load":
        for item in items:
            stock[item["typeName"]] = stock.get(item["typeName"], 0) + item["count"]
    elif operation == "unload":
        for item in items:
            remaining = stock.get(item["typeName"], 0) - item["count"]
            if remaining <= 0:
                stock.pop(item["typeName"], None)
            else:
                stock[item["typeName"]] = remaining
    else:
        raise ValidationError("operation must be 'load' or 'unload'", field="operation")

    return _as_list(stock)


def rebuild_inventory(flows: Iterable[Any]) -> list[dict]:
    """
    Replay ledger entries (ascending) into a fresh inventory.

    Consistency-repair tool. Entries are already accepted history, so an
    unload that would go below zero just removes the type instead of
    failing. Accepts WarehouseFlow rows or plain dicts with operation/items.
    """
    stock: dict[str, int] = {}
    for flow in flows:
        operation = flow["operation"] if isinstance(flow, dict) else flow.operation
        items = flow["items"] if isinstance(flow, dict) else flow.items
        for item in items or []:
            name = item["typeName"]
            count = int(item["count"])
            if operation == "load":
                stock[name] = stock.get(name, 0) + count
            else:
                remaining = stock.get(name, 0) - count
                if remaining <= 0:
                    stock.pop(name, None)
                else:
                    stock[name] = remaining
    return _as_list(stock)


def diff_inventory(stored: list[dict] | None, rebuilt: list[dict] | None) -> list[dict]:
    """Per-type differences between two inventories, in first-seen order."""
    a = _as_map(stored)
    b = _as_map(rebuilt)
    names = list(a) + [n for n in b if n not in a]
    return [
        {"typeName": n, "stored": a.get(n, 0), "rebuilt": b.get(n, 0)}
        for n in names
        if a.get(n, 0) != b.get(n, 0)
    ]


# ---------------------------------------------------------------------------
# Inventory replacement
# ---------------------------------------------------------------------------

def validate_inventory_payload(raw_inventory: Any) -> list[dict]:
    """
    Validate a full replacement inventory (PATCH body).

    Rows are reported 1-based. Duplicate type names are rejected to keep
    typeName unique.
    """
    if not isinstance(raw_inventory, list):
        raise ValidationError("inventory must be an array", field="inventory")

    inventory: list[dict] = []
    seen: set[str] = set()
    for idx, row in enumerate(raw_inventory, start=1):
        row = row if isinstance(row, dict) else {}
        type_name = parse_type_name(row.get("typeName"))
        if type_name is None:
            raise ValidationError(f"Row {idx}: typeName is required", row=idx, field="typeName")
        count = parse_count(row.get("count"))
        if count is None:
            raise ValidationError(f"Row {idx}: count must be a non-negative integer", row=idx, field="count")
        if type_name in seen:
            raise ValidationError(f'Row {idx}: duplicate typeName "{type_name}"', row=idx, field="typeName")
        seen.add(type_name)
        inventory.append({"typeName": type_name, "count": count})
    return inventory


# ---------------------------------------------------------------------------
# CSV import
# ---------------------------------------------------------------------------

def parse_inventory_csv(content: str) -> list[dict[str, str]]:
    """
    Parse CSV text into header-keyed rows.

    Tolerates a leading BOM, trims header names and cell values, skips
    empty lines and allows ragged rows (missing cells read as ""). A line of
    bare delimiters is still a data row so later row numbers stay aligned.
    """
    text = (content or "").lstrip("\ufeff")
    try:
        reader = csv.reader(io.StringIO(text))
        lines = [line for line in reader if line]
    except csv.Error as e:
        raise CsvImportError(f"Invalid CSV: {e}")

    if not lines:
        return []

    header = [h.strip() for h in lines[0]]
    rows: list[dict[str, str]] = []
    for line in lines[1:]:
        cells = [c.strip() for c in line]
        rows.append({key: (cells[i] if i < len(cells) else "") for i, key in enumerate(header)})
    return rows


def resolve_csv_columns(header: Iterable[str]) -> tuple[str, str]:
    """
    Find the type and count columns among the header keys.

    Matching is case-insensitive on trimmed names; the header key as written is
    returned so rows can be indexed directly.
    """
    keys = list(header)
    normalized = {k: k.strip().lower() for k in keys}
    type_key = next((k for k in keys if normalized[k] in TYPE_COLUMN_ALIASES), None)
    count_key = next((k for k in keys if normalized[k] in COUNT_COLUMN_ALIASES), None)
    if type_key is None or count_key is None:
        raise MissingColumnsError(
            "CSV must have columns for type (or typeName) and count (or quantity)"
        )
    return type_key, count_key


def merge_csv_rows(current_inventory: list[dict] | None, rows: list[dict[str, Any]]) -> list[dict]:
    """
    Additively merge CSV rows into an inventory.

    - Zero rows: returned unchanged (no column check).
    - Blank type: row skipped.
    - Bad count: whole import rejected, reported as "Row i+2" so the number
      matches a spreadsheet view with a header line.
    """
    if not rows:
        return _as_list(_as_map(current_inventory))

    type_key, count_key = resolve_csv_columns(rows[0].keys())
    stock = _as_map(current_inventory)

    for i, row in enumerate(rows):
        type_name = parse_type_name(row.get(type_key))
        if type_name is None:
            continue
        count = parse_count(row.get(count_key))
        if count is None:
            raise CsvImportError(
                f"Row {i + 2}: count must be a non-negative integer", row=i + 2, field="count"
            )
        stock[type_name] = stock.get(type_name, 0) + count

    return _as_list(stock)
