# Overview: Pytest coverage for full-dataset backup and restore.

import copy
import json

import pytest
from sqlalchemy import DateTime

from posbackend.errors import StorageError, ValidationError
from posbackend.models import Category, Discount, Product, Sale, SaleItem, Staff, Printer
from posbackend.services import backup_service, sales_service
from posbackend.time_utils import to_utc_z

TABLE_KEYS = ["categories", "products", "staff", "printers", "taxes", "discounts", "sales", "sale_items"]


def _without_timestamp(snapshot):
    return {k: v for k, v in snapshot.items() if k != "timestamp"}


@pytest.fixture
def populated(db_session, sale_payload, tax, fixed_discount):
    """A dataset touching every table, including one completed sale."""
    db_session.add(Printer(name="Front", ip_address="10.0.0.20", port=9100, printer_type="thermal"))
    db_session.commit()
    payload = dict(sale_payload, tax_id=tax.id, discount_id=fixed_discount.id)
    return sales_service.create_sale(db_session, payload)


class TestCreateBackup:

    def test_snapshot_shape(self, db_session, populated):
        snapshot = backup_service.create_backup(db_session)

        assert set(snapshot) == {"timestamp", *TABLE_KEYS}
        assert snapshot["timestamp"].endswith("Z")
        for key in TABLE_KEYS:
            assert len(snapshot[key]) == 1, key

        sale = snapshot["sales"][0]
        assert sale["id"] == populated["id"]
        assert sale["total_amount"] == 17.00
        assert isinstance(snapshot["taxes"][0]["rate"], float)
        assert snapshot["products"][0]["stock_quantity"] == 98

    def test_empty_database(self, db_session):
        snapshot = backup_service.create_backup(db_session)
        assert all(snapshot[key] == [] for key in TABLE_KEYS)

    def test_backup_is_repeatable(self, db_session, populated):
        first = backup_service.create_backup(db_session)
        second = backup_service.create_backup(db_session)
        assert _without_timestamp(first) == _without_timestamp(second)

    def test_snapshot_is_json_serializable(self, db_session, populated):
        snapshot = backup_service.create_backup(db_session)
        assert json.loads(json.dumps(snapshot)) == snapshot

    def test_timestamp_columns_store_naive_utc(self, db_session, populated):
        for model in backup_service.SNAPSHOT_MODELS.values():
            for column in model.__table__.columns:
                if isinstance(column.type, DateTime):
                    assert column.type.timezone is False, f"{model.__tablename__}.{column.name}"

        sale = db_session.get(Sale, populated["id"])
        assert sale.created_at.tzinfo is None
        assert to_utc_z(sale.created_at) == populated["created_at"]


class TestRestoreBackup:

    def test_round_trip(self, db_session, populated):
        snapshot = backup_service.create_backup(db_session)

        # Change the dataset after the backup
        db_session.add(Category(name="Snacks"))
        db_session.commit()
        sales_service.create_sale(db_session, {
            "staff_id": snapshot["staff"][0]["id"],
            "items": [{"product_id": snapshot["products"][0]["id"], "quantity": 5, "unit_price": 10}],
            "payment_method": "card",
        })

        result = backup_service.restore_backup(db_session, snapshot)

        assert result["success"] is True
        assert result["message"] == (
            f"Backup restored successfully. 8 records imported from {snapshot['timestamp']}"
        )
        restored = backup_service.create_backup(db_session)
        assert _without_timestamp(restored) == _without_timestamp(snapshot)

    def test_ids_preserved_and_new_rows_continue(self, db_session, populated, category):
        snapshot = backup_service.create_backup(db_session)
        old_ids = {row["id"] for row in snapshot["categories"]}

        backup_service.restore_backup(db_session, snapshot)
        assert {c.id for c in db_session.query(Category).all()} == old_ids

        db_session.add(Category(name="After Restore"))
        db_session.commit()
        newest = db_session.query(Category).filter_by(name="After Restore").one()
        assert newest.id not in old_ids

    def test_empty_snapshot_clears_everything(self, db_session, populated):
        empty = {"timestamp": "2026-01-01T00:00:00Z", **{key: [] for key in TABLE_KEYS}}

        result = backup_service.restore_backup(db_session, empty)

        assert "0 records imported" in result["message"]
        assert db_session.query(Sale).count() == 0
        assert db_session.query(SaleItem).count() == 0
        assert db_session.query(Product).count() == 0
        assert db_session.query(Staff).count() == 0

    def test_missing_table_rejected_before_touching_data(self, db_session, populated):
        snapshot = backup_service.create_backup(db_session)
        del snapshot["products"]

        with pytest.raises(ValidationError) as exc:
            backup_service.restore_backup(db_session, snapshot)

        assert exc.value.kind == "invalid snapshot"
        assert exc.value.details["missing"] == ["products"]
        assert db_session.query(Sale).count() == 1

    @pytest.mark.parametrize("mutate", [
        lambda s: s.pop("timestamp"),
        lambda s: s.update(staff="nope"),
        lambda s: s["products"].append("nope"),
        lambda s: s["products"][0].update(price="lots"),
        lambda s: s["products"][0].update(stock_quantity=1.5),
        lambda s: s["staff"][0].update(is_active="yes"),
        lambda s: s["sales"][0].update(created_at="last tuesday"),
        lambda s: s["categories"][0].update(name=None),
        lambda s: s["categories"].append(dict(s["categories"][0])),
        lambda s: s["discounts"][0].update(type="bogus"),
        lambda s: s["discounts"][0].update(type="percentage", value=500),
        lambda s: s["discounts"][0].update(value=0),
        lambda s: s["staff"][0].update(role="janitor"),
        lambda s: s["staff"][0].update(email="not-an-email"),
        lambda s: s["sales"][0].update(status="voided"),
        lambda s: s["sales"][0].update(payment_method="barter"),
        lambda s: s["printers"][0].update(printer_type="dot-matrix"),
        lambda s: s["printers"][0].update(port=70000),
        lambda s: s["taxes"][0].update(rate=150),
        lambda s: s["products"][0].update(price=0),
        lambda s: s["products"][0].update(stock_quantity=-1),
        lambda s: s["sale_items"][0].update(quantity=0),
    ])
    def test_malformed_snapshot_rejected(self, db_session, populated, mutate):
        snapshot = backup_service.create_backup(db_session)
        before = _without_timestamp(snapshot)
        broken = copy.deepcopy(snapshot)
        mutate(broken)

        with pytest.raises(ValidationError) as exc:
            backup_service.restore_backup(db_session, broken)

        assert exc.value.kind == "invalid snapshot"
        assert _without_timestamp(backup_service.create_backup(db_session)) == before

    def test_bogus_discount_never_reaches_storage(self, db_session, populated):
        snapshot = backup_service.create_backup(db_session)
        discount_id = snapshot["discounts"][0]["id"]
        snapshot["discounts"][0].update(type="bogus", value=500)

        with pytest.raises(ValidationError) as exc:
            backup_service.restore_backup(db_session, snapshot)

        assert exc.value.details["field"] == "type"
        assert db_session.get(Discount, discount_id).type == "fixed"

    def test_not_an_object(self, db_session):
        with pytest.raises(ValidationError):
            backup_service.restore_backup(db_session, ["not", "a", "snapshot"])

    def test_foreign_key_violation_keeps_previous_data(self, db_session, populated):
        snapshot = backup_service.create_backup(db_session)
        before = _without_timestamp(snapshot)
        broken = copy.deepcopy(snapshot)
        broken["sale_items"][0]["product_id"] = 987654

        with pytest.raises(StorageError):
            backup_service.restore_backup(db_session, broken)

        assert _without_timestamp(backup_service.create_backup(db_session)) == before


class TestBackupFiles:

    def test_write_and_read(self, db_session, populated, tmp_path):
        path = tmp_path / "nested" / "backup.json"
        written = backup_service.write_backup_file(db_session, path)

        assert path.exists()
        assert backup_service.read_backup_file(path) == written

    def test_read_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ValidationError) as exc:
            backup_service.read_backup_file(path)
        assert exc.value.kind == "invalid snapshot"
