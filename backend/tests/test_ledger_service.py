# Overview: Pytest coverage for flow request validation and ledger reads.

import pytest
from datetime import timedelta

from warehub.models import WarehouseFlow
from warehub.services import ledger_service
from warehub.services.ledger_service import (
    EmptyItems,
    FlowValidationError,
    InvalidCount,
    InvalidOperation,
    InvalidUnitPrice,
    MissingTypeName,
    validate_flow_request,
)
from warehub.time_utils import utcnow


class TestValidateFlowRequest:
    def test_normalizes_items(self):
        items = validate_flow_request("load", [{"typeName": " Widget ", "count": 10, "unitPrice": "2.5"}])
        assert items == [{"typeName": "Widget", "count": 10, "unitPrice": 2.5}]

    @pytest.mark.parametrize("operation", [None, "", "LOAD", "transfer", 1])
    def test_rejects_bad_operation(self, operation):
        with pytest.raises(InvalidOperation, match="operation must be 'load' or 'unload'"):
            validate_flow_request(operation, [{"typeName": "A", "count": 1, "unitPrice": 1}])

    @pytest.mark.parametrize("items", [None, [], {}, "A"])
    def test_rejects_empty_items(self, items):
        with pytest.raises(EmptyItems, match="items must be a non-empty array"):
            validate_flow_request("load", items)

    def test_missing_type_name_reports_row(self):
        with pytest.raises(MissingTypeName) as exc:
            validate_flow_request("load", [
                {"typeName": "A", "count": 1, "unitPrice": 1},
                {"typeName": "   ", "count": 1, "unitPrice": 1},
            ])
        assert exc.value.row == 2
        assert str(exc.value) == "Row 2: typeName is required"

    @pytest.mark.parametrize("count", [-1, 1.5, "abc", True, None, float("nan"), "\u0663", "\uff15"])
    def test_rejects_bad_count(self, count):
        with pytest.raises(InvalidCount) as exc:
            validate_flow_request("unload", [{"typeName": "A", "count": count, "unitPrice": 1}])
        assert exc.value.row == 1

    @pytest.mark.parametrize("price", [-0.01, None, "", "free", False, float("inf")])
    def test_rejects_bad_unit_price(self, price):
        with pytest.raises(InvalidUnitPrice) as exc:
            validate_flow_request("load", [{"typeName": "A", "count": 1, "unitPrice": price}])
        assert exc.value.to_dict()["row"] == 1

    def test_zero_count_and_price_are_valid(self):
        assert validate_flow_request("load", [{"typeName": "A", "count": 0, "unitPrice": 0}]) == [
            {"typeName": "A", "count": 0, "unitPrice": 0.0}
        ]

    def test_all_failures_share_base_class(self):
        with pytest.raises(FlowValidationError):
            validate_flow_request("load", [{"count": 1}])


class TestPagination:
    @pytest.mark.parametrize("raw,expected", [
        (None, 1), ("", 1), ("abc", 1), ("0", 1), ("-3", 1), ("4", 4), ("2.5", 2), (2.5, 2), ("3abc", 3),
    ])
    def test_normalize_page(self, raw, expected):
        assert ledger_service.normalize_page(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        (None, 20), ("x", 20), ("0", 20), ("-5", 1), ("1", 1), ("50", 50), ("1000", 100), ("2.5", 2), (7.9, 7),
    ])
    def test_normalize_limit(self, raw, expected):
        assert ledger_service.normalize_limit(raw) == expected


class TestLedgerReads:
    def _add(self, session, warehouse_id, created_at, count=1):
        flow = WarehouseFlow(
            warehouse_id=warehouse_id,
            operation="load",
            items=[{"typeName": "A", "count": count, "unitPrice": 1.0}],
            created_at=created_at,
        )
        session.add(flow)
        session.commit()
        return flow

    def test_list_is_newest_first_regardless_of_insert_order(self, db_session, warehouse_a):
        now = utcnow()
        middle = self._add(db_session, warehouse_a.id, now - timedelta(hours=2))
        newest = self._add(db_session, warehouse_a.id, now)
        oldest = self._add(db_session, warehouse_a.id, now - timedelta(days=3))

        entries, total = ledger_service.list_flows(warehouse_id=warehouse_a.id)
        assert total == 3
        assert [e.id for e in entries] == [newest.id, middle.id, oldest.id]

    def test_ties_broken_by_id_descending(self, db_session, warehouse_a):
        ts = utcnow()
        first = self._add(db_session, warehouse_a.id, ts)
        second = self._add(db_session, warehouse_a.id, ts)

        entries, _total = ledger_service.list_flows(warehouse_id=warehouse_a.id)
        assert [e.id for e in entries] == [second.id, first.id]

    def test_pages_and_total(self, db_session, warehouse_a):
        now = utcnow()
        for i in range(5):
            self._add(db_session, warehouse_a.id, now - timedelta(minutes=i), count=i)

        entries, total = ledger_service.list_flows(warehouse_id=warehouse_a.id, page=2, limit=2)
        assert total == 5
        assert [e.items[0]["count"] for e in entries] == [2, 3]

    def test_scoped_to_warehouse(self, db_session, warehouse_a):
        self._add(db_session, warehouse_a.id, utcnow())
        self._add(db_session, warehouse_a.id + 1000, utcnow())

        _entries, total = ledger_service.list_flows(warehouse_id=warehouse_a.id)
        assert total == 1

    def test_since_is_inclusive_and_ascending(self, db_session, warehouse_a):
        now = utcnow()
        boundary = now - timedelta(days=1)
        self._add(db_session, warehouse_a.id, boundary - timedelta(milliseconds=1))
        at_boundary = self._add(db_session, warehouse_a.id, boundary)
        later = self._add(db_session, warehouse_a.id, now)

        entries = ledger_service.list_flows_since(warehouse_id=warehouse_a.id, since=boundary)
        assert [e.id for e in entries] == [at_boundary.id, later.id]

    def test_record_flow_does_not_commit(self, db_session, warehouse_a):
        ledger_service.record_flow(
            warehouse_id=warehouse_a.id,
            operation="load",
            items=[{"typeName": "A", "count": 1, "unitPrice": 1.0}],
        )
        db_session.rollback()
        assert db_session.query(WarehouseFlow).count() == 0
