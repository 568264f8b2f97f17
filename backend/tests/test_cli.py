# Overview: Pytest coverage for Flask CLI commands (bootstrap and inventory rebuild).

from conftest import make_warehouse
from warehub.extensions import db
from warehub.models import User, Warehouse, WarehouseFlow
from warehub.services.warehouse_service import create_flow, rebuild_warehouse_inventory


class TestSystemInit:
    def test_seeds_admin_idempotently(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "ADMIN_EMAIL", "root@example.com")
        monkeypatch.setitem(app.config, "ADMIN_PASSWORD", "rootpass1")
        runner = app.test_cli_runner()

        first = runner.invoke(args=["system", "init"])
        assert "Created admin user: root@example.com" in first.output

        second = runner.invoke(args=["system", "init"])
        assert "Admin user already exists" in second.output

        admins = db.session.query(User).filter_by(is_admin=True).all()
        assert [u.email for u in admins] == ["root@example.com"]

    def test_skips_admin_without_password(self, app, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "ADMIN_PASSWORD", "")
        result = app.test_cli_runner().invoke(args=["system", "init"])
        assert "SKIP" in result.output
        assert db.session.query(User).count() == 0


class TestUsersCommands:
    def test_create_and_list(self, app, db_session):
        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            "users", "create", "--email", "erin@example.com", "--name", "Erin",
            "--password", "erinpass1", "--admin",
        ])
        assert "PASS Created admin: erin@example.com" in result.output

        listed = runner.invoke(args=["users", "list"])
        assert "erin@example.com" in listed.output

    def test_create_weak_password(self, app, db_session):
        result = app.test_cli_runner().invoke(args=[
            "users", "create", "--email", "f@example.com", "--name", "F", "--password", "weak",
        ])
        assert "Password validation failed" in result.output


class TestRebuildInventory:
    def _seed(self, user):
        warehouse = make_warehouse(db.session, user)
        create_flow(warehouse_id=warehouse.id, owner_id=user.id, operation="load",
                    raw_items=[{"typeName": "Widget", "count": 10, "unitPrice": 2}])
        create_flow(warehouse_id=warehouse.id, owner_id=user.id, operation="unload",
                    raw_items=[{"typeName": "Widget", "count": 4, "unitPrice": 3}])
        return warehouse

    def test_ledger_and_projection_agree_after_flows(self, db_session, user_a):
        warehouse = self._seed(user_a)
        result = rebuild_warehouse_inventory(warehouse.id)
        assert result["rebuilt"] == [{"typeName": "Widget", "count": 6}]
        assert result["differences"] == []
        assert db.session.query(WarehouseFlow).count() == 2

    def test_dry_run_then_apply(self, app, db_session, user_a):
        warehouse = self._seed(user_a)
        # Direct edit outside the ledger
        warehouse.inventory = [{"typeName": "Widget", "count": 9}, {"typeName": "Extra", "count": 1}]
        db.session.commit()

        runner = app.test_cli_runner()
        dry = runner.invoke(args=["warehouses", "rebuild-inventory", "--id", str(warehouse.id)])
        assert "2 type(s) differ" in dry.output
        assert "Dry run" in dry.output
        db.session.expire_all()
        assert db.session.get(Warehouse, warehouse.id).type_count == 2

        applied = runner.invoke(args=["warehouses", "rebuild-inventory", "--id", str(warehouse.id), "--apply"])
        assert "Rebuilt inventory written" in applied.output
        db.session.expire_all()
        assert db.session.get(Warehouse, warehouse.id).inventory == [{"typeName": "Widget", "count": 6}]

    def test_unknown_warehouse(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["warehouses", "rebuild-inventory", "--id", "9999"])
        assert result.exit_code == 1
        assert "not found" in result.output
