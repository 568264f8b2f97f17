# Overview: Pytest coverage for owner isolation across warehouse routes.

"""
Owner Isolation Tests

SECURITY TESTS: a warehouse owned by another user must look exactly like a
missing one (404) on every route, and must not be changed.
"""

import io

import pytest

from warehub.extensions import db
from warehub.models import Warehouse, WarehouseFlow


FLOW_BODY = {"operation": "load", "items": [{"typeName": "A", "count": 1, "unitPrice": 1}]}


@pytest.mark.parametrize("method,suffix,kwargs", [
    ("get", "", {}),
    ("put", "", {"json": {"name": "Hijacked"}}),
    ("delete", "", {}),
    ("patch", "/inventory", {"json": {"inventory": [{"typeName": "X", "count": 1}]}}),
    ("get", "/flow", {}),
    ("post", "/flow", {"json": FLOW_BODY}),
    ("get", "/analytics", {}),
    ("get", "/ai-advice", {}),
])
def test_foreign_warehouse_is_not_found(client, headers_b, warehouse_a, method, suffix, kwargs):
    response = getattr(client, method)(
        f"/api/warehouses/{warehouse_a.id}{suffix}", headers=headers_b, **kwargs
    )
    assert response.status_code == 404
    assert response.json == {"error": "Warehouse not found"}

    db.session.expire_all()
    warehouse = db.session.get(Warehouse, warehouse_a.id)
    assert warehouse is not None
    assert warehouse.name == "Main Depot"
    assert warehouse.inventory == []
    assert db.session.query(WarehouseFlow).count() == 0


def test_foreign_csv_upload_is_not_found(client, headers_b, warehouse_a):
    response = client.post(
        f"/api/warehouses/{warehouse_a.id}/inventory/upload",
        headers=headers_b,
        data={"file": (io.BytesIO(b"type,count\nA,5\n"), "stock.csv")},
        content_type="multipart/form-data",
    )
    assert response.status_code == 404

    db.session.expire_all()
    assert db.session.get(Warehouse, warehouse_a.id).inventory == []


def test_list_only_shows_own_warehouses(client, headers_a, headers_b, warehouse_a):
    assert [w["id"] for w in client.get("/api/warehouses", headers=headers_a).json["warehouses"]] == [warehouse_a.id]
    assert client.get("/api/warehouses", headers=headers_b).json["warehouses"] == []
