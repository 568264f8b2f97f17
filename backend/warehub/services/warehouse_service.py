# Overview: Service-layer operations for warehouses; owner-scoped CRUD and stock-changing workflows.

from __future__ import annotations

from typing import Any

from flask import current_app

from ..extensions import db
from ..models import Warehouse, WarehouseFlow
from ..validation import ModelValidationPolicy, ValidationError, parse_coordinates, validate_payload
from .concurrency import run_with_retry
from .inventory_service import (
    apply_flow,
    diff_inventory,
    merge_csv_rows,
    parse_inventory_csv,
    rebuild_inventory,
    validate_inventory_payload,
)
from .ledger_service import list_flows_since, record_flow, validate_flow_request
from warehub.time_utils import utcnow
"""
Warehub Warehouse Invariants (authoritative)

Ownership:
- Every read and write is scoped by (warehouse id, owner id). A warehouse
  owned by someone else is indistinguishable from a missing one
  (WarehouseNotFoundError -> 404).

Stock-changing workflows:
- Flow operation: validate -> re-read warehouse -> apply projection ->
  append ledger entry -> one commit. Retried on optimistic-lock conflicts;
  every attempt re-validates stock against the fresh row.
- CSV import: additive merge, not ledgered.
- Inventory replacement: overwrites the projection, not ledgered.
- Rebuild: replays the ledger; writes only when asked to.

Deletion:
- Deleting a warehouse leaves its ledger entries in place (orphaned).
"""


class WarehouseNotFoundError(ValueError):
    """Warehouse does not exist or is not owned by the caller."""

    def __init__(self, message: str = "Warehouse not found"):
        super().__init__(message)


WAREHOUSE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "address"},
    required_on_create={"name", "address"},
)

NO_ROWS_MESSAGE = "No rows to import"


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

def get_owned_warehouse(warehouse_id: int, owner_id: int) -> Warehouse:
    warehouse = db.session.query(Warehouse).filter_by(id=warehouse_id, owner_id=owner_id).first()
    if not warehouse:
        raise WarehouseNotFoundError()
    return warehouse


def list_warehouses(owner_id: int) -> list[Warehouse]:
    """Newest first."""
    return (
        db.session.query(Warehouse)
        .filter_by(owner_id=owner_id)
        .order_by(Warehouse.created_at.desc(), Warehouse.id.desc())
        .all()
    )


def _normalize_description(payload: dict) -> dict:
    if "description" in payload and payload["description"] is None:
        payload = dict(payload)
        payload["description"] = ""
    return payload


def create_warehouse(owner_id: int, payload: dict | None) -> Warehouse:
    payload = payload if isinstance(payload, dict) else {}
    if not payload.get("name") or not payload.get("address") or not payload.get("coordinates"):
        raise ValidationError("Name, address, and coordinates are required")

    lat, lng = parse_coordinates(payload["coordinates"])
    patch = validate_payload(
        model=Warehouse,
        payload=_normalize_description(payload),
        policy=WAREHOUSE_POLICY,
        partial=False,
    )

    now = utcnow()
    warehouse = Warehouse(
        owner_id=owner_id,
        name=patch["name"],
        description=patch.get("description") or "",
        address=patch["address"],
        lat=lat,
        lng=lng,
        inventory=[],
        created_at=now,
        updated_at=now,
    )
    db.session.add(warehouse)
    db.session.commit()
    return warehouse


def update_warehouse(warehouse_id: int, owner_id: int, payload: dict | None) -> Warehouse:
    """Partial update of name/description/address/coordinates. Inventory is not writable here."""
    payload = payload if isinstance(payload, dict) else {}

    coordinates = None
    if "coordinates" in payload:
        coordinates = parse_coordinates(payload["coordinates"])
    patch = validate_payload(
        model=Warehouse,
        payload=_normalize_description(payload),
        policy=WAREHOUSE_POLICY,
        partial=True,
    )

    def _op():
        warehouse = get_owned_warehouse(warehouse_id, owner_id)
        for key, value in patch.items():
            setattr(warehouse, key, value)
        if coordinates is not None:
            warehouse.lat, warehouse.lng = coordinates
        db.session.commit()
        return warehouse

    return run_with_retry(_op)


def delete_warehouse(warehouse_id: int, owner_id: int) -> None:
    """Ledger entries for the warehouse are kept."""
    warehouse = get_owned_warehouse(warehouse_id, owner_id)
    db.session.delete(warehouse)
    db.session.commit()


# ---------------------------------------------------------------------------
# Flow operation
# ---------------------------------------------------------------------------

def create_flow(
    *,
    warehouse_id: int,
    owner_id: int,
    operation: Any,
    raw_items: Any,
    performed_by: int | None = None,
) -> tuple[Warehouse, WarehouseFlow]:
    """
    Record a load/unload: projection update and ledger append in one commit.

    Raises FlowValidationError (400), WarehouseNotFoundError (404) or
    InsufficientStockError (409). On any of these nothing is written.
    """
    items = validate_flow_request(operation, raw_items)

    def _op():
        warehouse = get_owned_warehouse(warehouse_id, owner_id)
        warehouse.inventory = apply_flow(warehouse.inventory, operation, items)
        flow = record_flow(
            warehouse_id=warehouse.id,
            operation=operation,
            items=items,
            performed_by=performed_by,
        )
        db.session.commit()
        return warehouse, flow

    warehouse, flow = run_with_retry(_op)
    current_app.logger.info(
        "Flow recorded: warehouse=%s op=%s items=%s flow=%s",
        warehouse.id, operation, len(items), flow.id,
    )
    return warehouse, flow


# ---------------------------------------------------------------------------
# Projection writes outside the ledger
# ---------------------------------------------------------------------------

def replace_inventory(warehouse_id: int, owner_id: int, raw_inventory: Any) -> Warehouse:
    """Overwrite the projection. Not ledgered; a later rebuild will differ."""
    inventory = validate_inventory_payload(raw_inventory)

    def _op():
        warehouse = get_owned_warehouse(warehouse_id, owner_id)
        warehouse.inventory = inventory
        db.session.commit()
        return warehouse

    return run_with_retry(_op)


def import_inventory_csv(warehouse_id: int, owner_id: int, content: str) -> tuple[Warehouse, str]:
    """
    Additively merge CSV stock into the projection.

    Returns (warehouse, message). A CSV without data rows is a no-op.
    """
    rows = parse_inventory_csv(content)

    def _op():
        warehouse = get_owned_warehouse(warehouse_id, owner_id)
        if not rows:
            return warehouse, NO_ROWS_MESSAGE
        warehouse.inventory = merge_csv_rows(warehouse.inventory, rows)
        db.session.commit()
        return warehouse, "CSV imported successfully"

    warehouse, message = run_with_retry(_op)
    if rows:
        current_app.logger.info(
            "CSV imported: warehouse=%s rows=%s types=%s",
            warehouse.id, len(rows), warehouse.type_count,
        )
    return warehouse, message


def rebuild_warehouse_inventory(warehouse_id: int, *, apply: bool = False) -> dict:
    """
    Replay the full ledger and compare with the stored projection.

    Not owner-scoped (operator tool). Returns
    {"warehouseId", "stored", "rebuilt", "differences", "applied"}.
    """
    warehouse = db.session.get(Warehouse, warehouse_id)
    if not warehouse:
        raise WarehouseNotFoundError()

    rebuilt = rebuild_inventory(list_flows_since(warehouse_id=warehouse.id))
    stored = list(warehouse.inventory or [])
    differences = diff_inventory(stored, rebuilt)

    applied = False
    if apply and differences:
        warehouse.inventory = rebuilt
        db.session.commit()
        applied = True
        current_app.logger.info(
            "Inventory rebuilt: warehouse=%s differences=%s", warehouse.id, len(differences)
        )

    return {
        "warehouseId": warehouse.id,
        "stored": stored,
        "rebuilt": rebuilt,
        "differences": differences,
        "applied": applied,
    }
