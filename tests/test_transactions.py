from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from workshop.database import db
from workshop.errors import PersistenceError
from workshop.models import InventoryItem
from workshop.services.transactions import is_lock_conflict, run_in_transaction, transactional


def locked():
    return OperationalError("UPDATE inventory SET ...", {}, Exception("database is locked"))


def duplicate_key():
    return IntegrityError(
        "INSERT INTO inventory ...", {}, Exception("UNIQUE constraint failed: inventory.item_number")
    )


def test_lock_conflicts_are_recognised():
    assert is_lock_conflict(locked())
    assert not is_lock_conflict(duplicate_key())


def test_lock_conflict_is_retried_then_committed(app):
    calls = []

    def add_part():
        calls.append(1)
        db.session.add(InventoryItem(item_number="BLT-001", name="Fan Belt",
                                     quantity_on_hand=3, unit_price=Decimal("1200.00")))
        if len(calls) == 1:
            raise locked()
        return "done"

    assert run_in_transaction(add_part) == "done"
    assert len(calls) == 2

    db.session.expire_all()
    assert InventoryItem.query.filter_by(item_number="BLT-001").count() == 1


def test_retries_are_bounded(app):
    calls = []

    def always_locked():
        calls.append(1)
        raise locked()

    with pytest.raises(PersistenceError):
        run_in_transaction(always_locked)
    assert len(calls) == 1 + app.config["DEADLOCK_RETRIES"]


def test_other_database_errors_are_not_retried(app):
    calls = []

    def always_duplicate():
        calls.append(1)
        raise duplicate_key()

    with pytest.raises(PersistenceError):
        run_in_transaction(always_duplicate)
    assert len(calls) == 1


def test_nested_operation_joins_outer_transaction(app):
    @transactional
    def add_part(item_number):
        db.session.add(InventoryItem(item_number=item_number, name="Wiper Blade",
                                     quantity_on_hand=2, unit_price=Decimal("650.00")))

    @transactional
    def add_two_then_fail():
        add_part("WPR-001")
        add_part("WPR-002")
        raise duplicate_key()

    with pytest.raises(PersistenceError):
        add_two_then_fail()

    db.session.expire_all()
    assert InventoryItem.query.filter(InventoryItem.item_number.like("WPR-%")).count() == 0


def test_database_error_text_does_not_reach_the_client(app):
    @transactional
    def insert_duplicate():
        raise duplicate_key()

    def view():
        insert_duplicate()
        return "unreachable"

    app.add_url_rule("/api/_duplicate", "duplicate", view, methods=["POST"])
    response = app.test_client().post("/api/_duplicate")

    body = response.get_json()
    assert response.status_code == 500
    assert body["error_type"] == "server_error"
    assert body["message"] == "Internal server error. Please try again later."
    assert "UNIQUE" not in response.get_data(as_text=True)
