from decimal import Decimal

import pytest

from workshop.errors import (
    AuthorizationError, ConflictError, InsufficientStock, InvalidLaborCost, InvalidStatus,
    ValidationError,
)
from workshop.models import JobCardUpdate, JobStatus, UpdateType
from workshop.services import invoices, status_engine


@pytest.fixture
def mechanic_id(seeded):
    return seeded["users"]["mechanic"]


def edit(ctx, job_id, status, labor="0", **kwargs):
    return status_engine.update_job_card(ctx, job_id, status, labor, **kwargs)


def test_completed_at_follows_status(app, ctx_for, mechanic_id, open_job):
    advisor = ctx_for("advisor")
    job = open_job()
    assert job.completed_at is None

    job = edit(advisor, job.id, "completed", mechanic_id=mechanic_id)
    assert job.completed_at is not None

    job = edit(advisor, job.id, "in_progress", mechanic_id=mechanic_id)
    assert job.completed_at is None

    job = edit(advisor, job.id, "completed", mechanic_id=mechanic_id)
    assert job.completed_at is not None

    job = edit(advisor, job.id, "cancelled", cancellation_reason="Customer withdrew")
    assert job.completed_at is None
    assert job.cancellation_reason == "Customer withdrew"


@pytest.mark.parametrize("status", ["assigned", "in_progress", "on_hold", "waiting_for_parts"])
def test_active_work_needs_a_mechanic(app, ctx_for, open_job, status):
    job = open_job()
    with pytest.raises(ValidationError):
        edit(ctx_for("advisor"), job.id, status)
    assert job.status == JobStatus.PENDING


@pytest.mark.parametrize("status", ["done", "", None, "invoiced", "finance_received"])
def test_update_rejects_statuses_it_does_not_own(app, ctx_for, open_job, status):
    job = open_job()
    with pytest.raises(InvalidStatus):
        edit(ctx_for("advisor"), job.id, status)


@pytest.mark.parametrize("labor", ["-1", "abc", "", None, "NaN", "Infinity"])
def test_labor_cost_must_be_a_non_negative_number(app, ctx_for, open_job, labor):
    job = open_job()
    with pytest.raises(InvalidLaborCost) as excinfo:
        edit(ctx_for("advisor"), job.id, "pending", labor)
    assert excinfo.value.message == "Labor cost must be a non-negative number."


def test_labor_cost_is_stored_to_the_cent(app, ctx_for, open_job):
    job = open_job()
    job = edit(ctx_for("advisor"), job.id, "pending", "1500")
    assert job.labor_cost == Decimal("1500.00")


def test_mechanic_must_be_an_active_mechanic(app, ctx_for, seeded, open_job):
    job = open_job()
    with pytest.raises(ValidationError):
        edit(ctx_for("advisor"), job.id, "assigned", mechanic_id=seeded["users"]["parts"])


def test_only_editors_can_update(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    with pytest.raises(AuthorizationError):
        edit(ctx_for("mechanic"), job.id, "in_progress", mechanic_id=mechanic_id)
    with pytest.raises(AuthorizationError):
        edit(ctx_for("driver"), job.id, "cancelled")


def test_update_with_parts_is_all_or_nothing(app, ctx_for, item_id, stock, mechanic_id, open_job):
    job = open_job()
    with pytest.raises(InsufficientStock):
        edit(ctx_for("advisor"), job.id, "in_progress", "800", mechanic_id=mechanic_id,
             parts=[(item_id("OIL-001"), 1), (item_id("BRK-001"), 9)])

    assert job.status == JobStatus.PENDING
    assert job.labor_cost == Decimal("0.00")
    assert job.assigned_mechanic_id is None
    assert stock("OIL-001") == 20


def test_update_with_parts_applies_both(app, ctx_for, item_id, stock, mechanic_id, open_job):
    job = open_job()
    job = edit(ctx_for("manager"), job.id, "in_progress", "800", mechanic_id=mechanic_id,
               parts=[(item_id("OIL-001"), 1)])

    assert job.status == JobStatus.IN_PROGRESS
    assert job.assigned_at is not None
    assert stock("OIL-001") == 19
    types = [entry.update_type for entry in JobCardUpdate.query.filter_by(job_card_id=job.id)]
    assert UpdateType.ASSIGNMENT in types
    assert UpdateType.PARTS_ASSIGNMENT in types


def test_assign_job(app, ctx_for, item_id, stock, mechanic_id, open_job):
    job = open_job()
    job = status_engine.assign_job(ctx_for("advisor"), job.id, mechanic_id, labor_cost="2000",
                                   parts=[(item_id("FLT-001"), 1)])

    assert job.status == JobStatus.ASSIGNED
    assert job.assigned_mechanic_id == mechanic_id
    assert job.labor_cost == Decimal("2000.00")
    assert stock("FLT-001") == 9


def test_assign_only_from_assignable_statuses(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    edit(ctx_for("advisor"), job.id, "in_progress", mechanic_id=mechanic_id)

    with pytest.raises(ConflictError):
        status_engine.assign_job(ctx_for("advisor"), job.id, mechanic_id)


def test_technician_moves_own_job(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    status_engine.assign_job(ctx_for("advisor"), job.id, mechanic_id)

    job = status_engine.update_technician_status(ctx_for("mechanic"), job.id, "in_progress")
    assert job.status == JobStatus.IN_PROGRESS

    job = status_engine.update_technician_status(ctx_for("mechanic"), job.id, "completed")
    assert job.status == JobStatus.COMPLETED
    assert job.completed_at is not None

    with pytest.raises(InvalidStatus):
        status_engine.update_technician_status(ctx_for("mechanic"), job.id, "cancelled")


def test_technician_cannot_touch_other_jobs(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    status_engine.assign_job(ctx_for("advisor"), job.id, mechanic_id)

    with pytest.raises(AuthorizationError):
        status_engine.update_technician_status(ctx_for("mechanic2"), job.id, "in_progress")


def test_finance_review(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    with pytest.raises(ConflictError):
        status_engine.update_finance_status(ctx_for("supervisor"), job.id, "finance_received")

    job = edit(ctx_for("advisor"), job.id, "completed", "1000", mechanic_id=mechanic_id)
    completed_at = job.completed_at

    with pytest.raises(AuthorizationError):
        status_engine.update_finance_status(ctx_for("advisor"), job.id, "finance_received")

    job = status_engine.update_finance_status(ctx_for("supervisor"), job.id, "finance_received")
    assert job.status == JobStatus.FINANCE_RECEIVED
    assert job.completed_at == completed_at


def test_finance_cancellation_needs_reason(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    edit(ctx_for("advisor"), job.id, "completed", mechanic_id=mechanic_id)

    with pytest.raises(ValidationError):
        status_engine.update_finance_status(ctx_for("admin"), job.id, "finance_cancelled")

    job = status_engine.update_finance_status(
        ctx_for("admin"), job.id, "finance_cancelled", reason="Duplicate job card"
    )
    assert job.status == JobStatus.FINANCE_CANCELLED
    assert job.completed_at is None
    assert job.cancellation_reason == "Duplicate job card"


def test_invoiced_card_is_frozen(app, ctx_for, mechanic_id, open_job):
    job = open_job()
    edit(ctx_for("advisor"), job.id, "completed", "500", mechanic_id=mechanic_id)
    invoices.generate_invoice(ctx_for("supervisor"), job.id)

    with pytest.raises(ConflictError):
        edit(ctx_for("advisor"), job.id, "in_progress", mechanic_id=mechanic_id)
    with pytest.raises(ConflictError):
        status_engine.update_technician_status(ctx_for("mechanic"), job.id, "in_progress")
