from __future__ import annotations

from ..extensions import db
from warehub.time_utils import to_utc_z, utcnow


class Warehouse(db.Model):
    """
    A user-owned warehouse and its current stock.

    INVENTORY PROJECTION:
    `inventory` is an ordered JSON list of {"typeName", "count"} entries and
    is a cached view over the WarehouseFlow ledger. typeName is unique within
    the list and count is never negative. It is only written by
    warehouse_service (flow operations, CSV merge, inventory replacement);
    always assign a new list, never mutate in place, so SQLAlchemy sees the
    change.

    version_id gives per-row optimistic locking: a concurrent update of the
    same warehouse fails with StaleDataError instead of silently overwriting.
    """
    __tablename__ = "warehouses"
    __table_args__ = (
        db.Index("ix_warehouses_owner_created", "owner_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    address = db.Column(db.String(500), nullable=False)

    lat = db.Column(db.Float, nullable=False)
    lng = db.Column(db.Float, nullable=False)

    inventory = db.Column(db.JSON, nullable=False, default=list)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    owner = db.relationship("User", backref=db.backref("warehouses", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} name={self.name!r} owner_id={self.owner_id}>"

    @property
    def total_items(self) -> int:
        return sum(int(i["count"]) for i in (self.inventory or []))

    @property
    def type_count(self) -> int:
        return len(self.inventory or [])

    def to_dict(self) -> dict:
        """List view; totals are derived on read, never stored."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "coordinates": [self.lng, self.lat],
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
            "totalItems": self.total_items,
            "typeCount": self.type_count,
        }

    def to_detail_dict(self) -> dict:
        data = self.to_dict()
        data["inventory"] = [
            {"typeName": i["typeName"], "count": int(i["count"])}
            for i in (self.inventory or [])
        ]
        return data


class WarehouseFlow(db.Model):
    """
    One load/unload transaction (the flow ledger).

    LEDGER INVARIANTS:
    - Append-only: rows are never updated or deleted.
    - items is a non-empty JSON list of {"typeName", "count", "unitPrice"}
      with count a non-negative int and unitPrice a non-negative number.
    - created_at is server-assigned at insert; (created_at, id) is the
      canonical ordering.

    warehouse_id is a plain reference without a foreign key: deleting a
    warehouse orphans its history instead of deleting it.
    """
    __tablename__ = "warehouse_flows"
    __table_args__ = (
        db.Index("ix_warehouse_flows_warehouse_created", "warehouse_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    warehouse_id = db.Column(db.Integer, nullable=False, index=True)

    operation = db.Column(db.String(16), nullable=False)
    items = db.Column(db.JSON, nullable=False)

    performed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<WarehouseFlow id={self.id} warehouse_id={self.warehouse_id} op={self.operation}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "warehouseId": self.warehouse_id,
            "operation": self.operation,
            "items": [
                {"typeName": i["typeName"], "count": int(i["count"]), "unitPrice": i["unitPrice"]}
                for i in (self.items or [])
            ],
            "performedBy": self.performed_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }
