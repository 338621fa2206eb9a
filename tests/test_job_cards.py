from decimal import Decimal

import pytest

from workshop.database import db
from workshop.errors import (
    AuthorizationError, ConflictError, InsufficientStock, JobCardNotFound, ValidationError,
)
from workshop.models import (
    InventoryItem, JobCard, JobCardPart, JobCardUpdate, JobStatus, PartsRequestStatus,
    UpdateType, UsageLog, UsageLogType, Vehicle,
)
from workshop.services import inventory, job_cards, status_engine


def updates_of(job_id, update_type):
    return JobCardUpdate.query.filter_by(job_card_id=job_id, update_type=update_type).all()


def test_driver_requests_service_for_own_vehicle(app, ctx_for, seeded):
    job = job_cards.create_job_card(ctx_for("driver"), seeded["vehicle_id"], "Engine knocking", "high")

    assert job.status == JobStatus.PENDING
    assert job.urgency == "high"
    assert job.created_by_id == seeded["users"]["driver"]
    assert len(updates_of(job.id, UpdateType.STATUS_CHANGE)) == 1


def test_driver_cannot_open_card_for_someone_elses_vehicle(app, ctx_for, seeded):
    with pytest.raises(AuthorizationError):
        job_cards.create_job_card(ctx_for("driver2"), seeded["vehicle_id"], "Flat tyre")


def test_create_requires_description_and_known_urgency(app, ctx_for, seeded):
    with pytest.raises(ValidationError):
        job_cards.create_job_card(ctx_for("advisor"), seeded["vehicle_id"], "   ")
    with pytest.raises(ValidationError):
        job_cards.create_job_card(ctx_for("advisor"), seeded["vehicle_id"], "Noise", "urgent")
    assert JobCard.query.count() == 0


def test_quick_create_registers_placeholder_vehicle(app, ctx_for):
    job = job_cards.quick_create_job_card(ctx_for("advisor"), " kdd 900x ", "Overheating")

    vehicle = Vehicle.query.filter_by(registration_number="KDD 900X").one()
    assert job.vehicle_id == vehicle.id
    assert vehicle.make == "Unknown"


def test_quick_create_rejects_owner_who_is_not_a_driver(app, ctx_for, seeded):
    for owner_id in (seeded["users"]["mechanic"], 424242):
        with pytest.raises(ValidationError):
            job_cards.quick_create_job_card(
                ctx_for("advisor"), "KDZ 999Z", "No start", driver_id=owner_id
            )
    assert Vehicle.query.filter_by(registration_number="KDZ 999Z").first() is None


def test_quick_create_assigns_placeholder_to_driver(app, ctx_for, seeded):
    job_cards.quick_create_job_card(
        ctx_for("advisor"), "KDZ 999Z", "No start", driver_id=seeded["users"]["driver2"]
    )
    vehicle = Vehicle.query.filter_by(registration_number="KDZ 999Z").one()
    assert vehicle.driver_id == seeded["users"]["driver2"]


def test_quick_create_reuses_known_vehicle(app, ctx_for, seeded):
    job = job_cards.quick_create_job_card(ctx_for("manager"), "kca 123a", "Service")
    assert job.vehicle_id == seeded["vehicle_id"]
    assert Vehicle.query.count() == 1


def test_replace_parts_deducts_stock_at_current_price(app, ctx_for, item_id, stock, open_job):
    job = open_job()
    job = job_cards.replace_parts_for_job_card(
        ctx_for("advisor"), job.id, [(item_id("BRK-001"), 2), (item_id("FLT-001"), 1)]
    )

    assert stock("BRK-001") == 2
    assert stock("FLT-001") == 9
    assert {(part.item_id, part.quantity_used) for part in job.parts} == {
        (item_id("BRK-001"), 2), (item_id("FLT-001"), 1)
    }
    assert job.parts_cost == Decimal("5800.00")
    assert len(updates_of(job.id, UpdateType.PARTS_ASSIGNMENT)) == 2
    consumed = UsageLog.query.filter_by(job_card_id=job.id, log_type=UsageLogType.CONSUMED).all()
    assert sorted(log.quantity_change for log in consumed) == [-2, -1]


def test_price_is_captured_at_time_of_use(app, ctx_for, item_id, open_job):
    job = open_job()
    job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("OIL-001"), 1)])

    db.session.get(InventoryItem, item_id("OIL-001")).unit_price = Decimal("9999.00")
    db.session.commit()

    part = JobCardPart.query.filter_by(job_card_id=job.id).one()
    assert part.unit_price == Decimal("3200.00")


def test_replacing_parts_returns_previous_lines_to_stock(app, ctx_for, item_id, stock, open_job):
    job = open_job()
    job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("BRK-001"), 2)])
    job = job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("BRK-001"), 3)])

    assert stock("BRK-001") == 1
    assert [(part.item_id, part.quantity_used) for part in job.parts] == [(item_id("BRK-001"), 3)]
    assert len(updates_of(job.id, UpdateType.PARTS_RETURNED)) == 1
    returned = UsageLog.query.filter_by(log_type=UsageLogType.RETURNED).one()
    assert returned.quantity_change == 2


def test_duplicate_lines_are_merged(app, ctx_for, item_id, stock, open_job):
    job = open_job()
    job = job_cards.replace_parts_for_job_card(
        ctx_for("advisor"), job.id, [(item_id("FLT-001"), 2), (item_id("FLT-001"), 3)]
    )
    assert [part.quantity_used for part in job.parts] == [5]
    assert stock("FLT-001") == 5


def test_brake_pad_scenario(app, ctx_for, item_id, stock, open_job):
    job = open_job()

    with pytest.raises(InsufficientStock) as excinfo:
        job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("BRK-001"), 5)])
    assert "Insufficient stock" in excinfo.value.message
    assert stock("BRK-001") == 4

    job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("BRK-001"), 4)])
    assert stock("BRK-001") == 0


def test_failed_replacement_leaves_everything_untouched(app, ctx_for, item_id, stock, open_job):
    admin = ctx_for("admin")
    extra = [
        inventory.create_item(admin, "ALT-001", "Alternator Belt", Decimal("1200.00"), 6),
        inventory.create_item(admin, "WPR-001", "Wiper Blade", Decimal("600.00"), 8),
    ]
    job = open_job()
    job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("OIL-001"), 1)])
    logs_before = UsageLog.query.count()
    updates_before = JobCardUpdate.query.filter_by(job_card_id=job.id).count()

    # Lines are processed in item order; Oil Filter is the third of the five.
    requested = [
        (item_id("BRK-001"), 1),
        (item_id("OIL-001"), 2),
        (item_id("FLT-001"), 11),
        (extra[0].id, 1),
        (extra[1].id, 2),
    ]
    with pytest.raises(InsufficientStock):
        job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, requested)

    assert stock("BRK-001") == 4
    assert stock("OIL-001") == 19
    assert stock("FLT-001") == 10
    assert stock("ALT-001") == 6
    assert stock("WPR-001") == 8
    parts = JobCardPart.query.filter_by(job_card_id=job.id).all()
    assert [(part.item_id, part.quantity_used) for part in parts] == [(item_id("OIL-001"), 1)]
    assert UsageLog.query.count() == logs_before
    assert JobCardUpdate.query.filter_by(job_card_id=job.id).count() == updates_before


@pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
def test_replace_parts_rejects_bad_quantities(app, ctx_for, item_id, stock, open_job, quantity):
    job = open_job()
    with pytest.raises(ValidationError):
        job_cards.replace_parts_for_job_card(ctx_for("advisor"), job.id, [(item_id("OIL-001"), quantity)])
    assert stock("OIL-001") == 20


def test_replace_parts_on_missing_job(app, ctx_for, item_id):
    with pytest.raises(JobCardNotFound):
        job_cards.replace_parts_for_job_card(ctx_for("advisor"), 404, [(item_id("OIL-001"), 1)])


def test_mechanic_cannot_rewrite_parts_list(app, ctx_for, item_id, open_job):
    job = open_job()
    with pytest.raises(AuthorizationError):
        job_cards.replace_parts_for_job_card(ctx_for("mechanic"), job.id, [(item_id("OIL-001"), 1)])


def test_assigned_mechanic_records_part_usage(app, ctx_for, seeded, item_id, stock, open_job):
    job = open_job()
    status_engine.assign_job(ctx_for("advisor"), job.id, seeded["users"]["mechanic"])

    part = job_cards.record_part_usage(ctx_for("mechanic"), job.id, item_id("FLT-001"), 2)

    assert part.line_total == Decimal("1600.00")
    assert stock("FLT-001") == 8
    assert len(updates_of(job.id, UpdateType.PARTS_USED)) == 1

    with pytest.raises(AuthorizationError):
        job_cards.record_part_usage(ctx_for("mechanic2"), job.id, item_id("FLT-001"), 1)
    assert stock("FLT-001") == 8


def test_work_log(app, ctx_for, seeded, open_job):
    job = open_job()
    status_engine.assign_job(ctx_for("advisor"), job.id, seeded["users"]["mechanic"])

    job_cards.log_work(ctx_for("mechanic"), job.id, "Replaced front pads, bled the brakes.")
    assert len(updates_of(job.id, UpdateType.WORK_LOG)) == 1

    with pytest.raises(ValidationError):
        job_cards.log_work(ctx_for("mechanic"), job.id, "")


def test_parts_request_approval_issues_stock(app, ctx_for, seeded, item_id, stock, open_job):
    job = open_job()
    status_engine.assign_job(ctx_for("advisor"), job.id, seeded["users"]["mechanic"])

    parts_request = job_cards.request_parts(ctx_for("mechanic"), job.id, item_id("BRK-001"), 2)
    assert parts_request.status == PartsRequestStatus.PENDING
    assert stock("BRK-001") == 4

    reviewed = job_cards.review_parts_request(ctx_for("parts"), parts_request.id, approve=True)
    assert reviewed.status == PartsRequestStatus.APPROVED
    assert reviewed.reviewed_by_id == seeded["users"]["parts"]
    assert stock("BRK-001") == 2
    assert JobCardPart.query.filter_by(job_card_id=job.id).count() == 1

    with pytest.raises(ConflictError):
        job_cards.review_parts_request(ctx_for("parts"), parts_request.id, approve=True)
    assert stock("BRK-001") == 2


def test_parts_request_rejection_and_ownership(app, ctx_for, seeded, item_id, stock, open_job):
    job = open_job()
    status_engine.assign_job(ctx_for("advisor"), job.id, seeded["users"]["mechanic"])

    with pytest.raises(AuthorizationError):
        job_cards.request_parts(ctx_for("mechanic2"), job.id, item_id("BRK-001"), 1)

    parts_request = job_cards.request_parts(ctx_for("mechanic"), job.id, item_id("BRK-001"), 1)
    reviewed = job_cards.review_parts_request(ctx_for("manager"), parts_request.id, approve=False)

    assert reviewed.status == PartsRequestStatus.REJECTED
    assert stock("BRK-001") == 4


def test_listing_is_scoped_to_the_caller(app, ctx_for, seeded, open_job):
    first = open_job()
    open_job(issue="Check engine light")
    status_engine.assign_job(ctx_for("advisor"), first.id, seeded["users"]["mechanic"])

    assert len(job_cards.list_job_cards(ctx_for("manager"))) == 2
    assert len(job_cards.list_job_cards(ctx_for("driver"))) == 2
    assert job_cards.list_job_cards(ctx_for("driver2")) == []
    assert [job.id for job in job_cards.list_job_cards(ctx_for("mechanic"))] == [first.id]
    assert len(job_cards.list_job_cards(ctx_for("manager"), status=JobStatus.PENDING)) == 1
