"""
Job card ledger: opening cards, the parts consumed against them, work
logs and parts requests.

Every mutation appends a ``JobCardUpdate`` row in the same transaction.
"""
import logging
from datetime import datetime

from flask import current_app

from workshop.database import db
from workshop.errors import (
    AuthorizationError, ConflictError, JobCardNotFound, NotFoundError, ValidationError,
)
from workshop.models import (
    CLOSED_STATUSES, JobCard, JobCardPart, JobCardUpdate, JobStatus, PartsRequest,
    PartsRequestStatus, UpdateType, UsageLogType, UserRole, Vehicle,
)
from workshop.services import inventory, vehicles
from workshop.services.transactions import transactional

logger = logging.getLogger(__name__)

JOB_EDITORS = (UserRole.ADMIN, UserRole.WORKSHOP_MANAGER, UserRole.SERVICE_ADVISOR)
WORKSHOP_FLOOR = (UserRole.ADMIN, UserRole.WORKSHOP_MANAGER, UserRole.MECHANIC)
PARTS_DESK = (UserRole.ADMIN, UserRole.WORKSHOP_MANAGER, UserRole.PARTS_MANAGER)
URGENCY_LEVELS = ('low', 'medium', 'high')


def money(amount):
    return f"{current_app.config.get('CURRENCY', 'KES')} {amount:,.2f}"


def record_update(job_card_id, user_id, update_type, description):
    entry = JobCardUpdate(
        job_card_id=job_card_id,
        user_id=user_id,
        update_type=update_type,
        description=description,
    )
    db.session.add(entry)
    return entry


def get_job_card(job_card_id):
    job = db.session.get(JobCard, job_card_id)
    if job is None:
        raise JobCardNotFound()
    return job


def lock_job_card(job_card_id):
    """Load a job card with a row lock held until the transaction ends."""
    job = (
        db.session.query(JobCard)
        .filter(JobCard.id == job_card_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if job is None:
        raise JobCardNotFound()
    return job


def ensure_open(job):
    if job.status in CLOSED_STATUSES:
        raise ConflictError(
            f"Job card {job.id} is {job.status.value} and can no longer be changed."
        )


def ensure_assigned_to_caller(ctx, job):
    if ctx.user_type == UserRole.MECHANIC and job.assigned_mechanic_id != ctx.user_id:
        raise AuthorizationError('You are not assigned to this job or job not found.')


def ensure_visible_to(ctx, job):
    """Drivers see jobs on their own vehicles, mechanics the jobs assigned to them."""
    if ctx.user_type == UserRole.DRIVER and job.vehicle.driver_id != ctx.user_id:
        raise JobCardNotFound()
    if ctx.user_type == UserRole.MECHANIC and job.assigned_mechanic_id != ctx.user_id:
        raise JobCardNotFound()


def list_job_cards(ctx, status=None, mechanic_id=None, vehicle_id=None):
    query = JobCard.query
    if ctx.user_type == UserRole.DRIVER:
        query = query.join(Vehicle).filter(Vehicle.driver_id == ctx.user_id)
    elif ctx.user_type == UserRole.MECHANIC:
        query = query.filter(JobCard.assigned_mechanic_id == ctx.user_id)
    if status:
        query = query.filter(JobCard.status == status)
    if mechanic_id:
        query = query.filter(JobCard.assigned_mechanic_id == mechanic_id)
    if vehicle_id:
        query = query.filter(JobCard.vehicle_id == vehicle_id)
    return query.order_by(JobCard.created_at.desc(), JobCard.id.desc()).all()


def list_parts_for_job_card(job_card_id):
    return get_job_card(job_card_id).parts


def list_updates(job_card_id):
    get_job_card(job_card_id)
    return (
        JobCardUpdate.query
        .filter_by(job_card_id=job_card_id)
        .order_by(JobCardUpdate.created_at.desc(), JobCardUpdate.id.desc())
        .all()
    )


def _open_job_card(ctx, vehicle, issue_description, urgency):
    issue_description = (issue_description or '').strip()
    if not issue_description:
        raise ValidationError('Issue description is required.')
    if urgency not in URGENCY_LEVELS:
        raise ValidationError(f"Invalid urgency. Must be one of: {', '.join(URGENCY_LEVELS)}")

    job = JobCard(
        vehicle=vehicle,
        issue_description=issue_description,
        urgency=urgency,
        status=JobStatus.PENDING,
        created_by_id=ctx.user_id,
    )
    db.session.add(job)
    db.session.flush()
    record_update(job.id, ctx.user_id, UpdateType.STATUS_CHANGE,
                  f"Job card opened for {vehicle.registration_number} with status 'pending'")
    logger.info("Job card %s opened for vehicle %s by user %s",
                job.id, vehicle.registration_number, ctx.user_id)
    return job


@transactional
def create_job_card(ctx, vehicle_id, issue_description, urgency='medium'):
    """A driver's service request, or a staff member opening a card for a known vehicle."""
    ctx.require_role(UserRole.DRIVER, *JOB_EDITORS)

    vehicle = db.session.get(Vehicle, vehicle_id)
    if vehicle is None:
        raise NotFoundError('Vehicle not found.')
    if ctx.user_type == UserRole.DRIVER and vehicle.driver_id != ctx.user_id:
        raise AuthorizationError('You can only request service for your own vehicles.')
    return _open_job_card(ctx, vehicle, issue_description, urgency)


@transactional
def quick_create_job_card(ctx, registration_number, issue_description, driver_id=None,
                          urgency='medium'):
    """Front-desk intake by registration; unknown vehicles get a placeholder record."""
    ctx.require_role(*JOB_EDITORS)

    registration_number = (registration_number or '').strip().upper()
    if not registration_number:
        raise ValidationError('Registration number is required.')

    vehicle = Vehicle.query.filter_by(registration_number=registration_number).first()
    if vehicle is None:
        vehicles.check_driver(driver_id)
        vehicle = Vehicle(
            registration_number=registration_number,
            make='Unknown',
            model='Unknown',
            driver_id=driver_id,
        )
        db.session.add(vehicle)
        db.session.flush()
        logger.info("Placeholder vehicle %s registered during intake", registration_number)
    return _open_job_card(ctx, vehicle, issue_description, urgency)


def normalise_part_lines(lines):
    """
    Validate requested ``(item_id, quantity)`` lines and merge repeats of
    the same item. Returned in item id order so row locks are always
    taken in the same order.
    """
    merged = {}
    for item_id, quantity in lines:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f'Invalid quantity for part ID {item_id}')
        merged[item_id] = merged.get(item_id, 0) + quantity
    return sorted(merged.items())


def consume_part(ctx, job, item_id, quantity, update_type):
    """Deduct stock and record a priced consumption line on ``job``."""
    item = inventory.reserve_and_deduct(item_id, quantity)
    part = JobCardPart(
        item=item,
        quantity_used=quantity,
        unit_price=item.unit_price,
        assigned_by_id=ctx.user_id,
    )
    job.parts.append(part)
    inventory.log_usage(item.id, -quantity, UsageLogType.CONSUMED, ctx.user_id, job_card_id=job.id)
    record_update(
        job.id, ctx.user_id, update_type,
        f"{quantity} x '{item.name}' (Item #{item.item_number}) for "
        f"{money(part.line_total)} added to job."
    )
    return part


@transactional
def replace_parts_for_job_card(ctx, job_card_id, lines):
    """
    Replace the job's parts list wholesale.

    Existing lines are returned to stock and deleted, then every requested
    line is deducted. Any failure rolls back the whole replacement,
    including the returns.
    """
    ctx.require_role(*JOB_EDITORS)
    requested = normalise_part_lines(lines)

    job = lock_job_card(job_card_id)
    ensure_open(job)

    for part in list(job.parts):
        inventory.credit(part.item_id, part.quantity_used)
        inventory.log_usage(part.item_id, part.quantity_used, UsageLogType.RETURNED,
                            ctx.user_id, job_card_id=job.id, note='Replaced on job card edit')
        record_update(
            job.id, ctx.user_id, UpdateType.PARTS_RETURNED,
            f"{part.quantity_used} x '{part.item.name}' (Item #{part.item.item_number}) "
            f"returned to stock."
        )
    job.parts.clear()
    db.session.flush()

    for item_id, quantity in requested:
        consume_part(ctx, job, item_id, quantity, UpdateType.PARTS_ASSIGNMENT)

    db.session.flush()
    logger.info("Parts for job card %s replaced by user %s (%d lines)",
                job.id, ctx.user_id, len(requested))
    return job


@transactional
def record_part_usage(ctx, job_card_id, item_id, quantity):
    """Append one consumption line, as a technician does at the bench."""
    ctx.require_role(*WORKSHOP_FLOOR)
    [(item_id, quantity)] = normalise_part_lines([(item_id, quantity)])

    job = lock_job_card(job_card_id)
    ensure_assigned_to_caller(ctx, job)
    ensure_open(job)
    return consume_part(ctx, job, item_id, quantity, UpdateType.PARTS_USED)


@transactional
def log_work(ctx, job_card_id, description):
    ctx.require_role(*WORKSHOP_FLOOR)
    description = (description or '').strip()
    if not description:
        raise ValidationError('Work description cannot be empty.')

    job = get_job_card(job_card_id)
    ensure_assigned_to_caller(ctx, job)
    return record_update(job.id, ctx.user_id, UpdateType.WORK_LOG, description)


def list_parts_requests(status=None, job_card_id=None):
    query = PartsRequest.query
    if status:
        query = query.filter(PartsRequest.status == status)
    if job_card_id:
        query = query.filter(PartsRequest.job_card_id == job_card_id)
    return query.order_by(PartsRequest.created_at.desc(), PartsRequest.id.desc()).all()


@transactional
def request_parts(ctx, job_card_id, item_id, quantity):
    ctx.require_role(UserRole.MECHANIC)
    [(item_id, quantity)] = normalise_part_lines([(item_id, quantity)])

    job = get_job_card(job_card_id)
    if job.assigned_mechanic_id != ctx.user_id:
        raise AuthorizationError('Job card not found or not assigned to you.')
    ensure_open(job)
    item = inventory.get_item(item_id)

    parts_request = PartsRequest(
        job_card_id=job.id,
        mechanic_id=ctx.user_id,
        item_id=item.id,
        quantity_requested=quantity,
    )
    db.session.add(parts_request)
    record_update(job.id, ctx.user_id, UpdateType.PARTS_REQUEST,
                  f"Requested {quantity} x '{item.name}' (Item #{item.item_number}).")
    return parts_request


@transactional
def review_parts_request(ctx, request_id, approve):
    """Approve (issuing the stock to the job) or reject a pending request."""
    ctx.require_role(*PARTS_DESK)

    parts_request = (
        db.session.query(PartsRequest)
        .filter(PartsRequest.id == request_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if parts_request is None:
        raise NotFoundError('Parts request not found.')
    if parts_request.status != PartsRequestStatus.PENDING:
        raise ConflictError(f'Parts request has already been {parts_request.status}.')

    job = lock_job_card(parts_request.job_card_id)
    if approve:
        ensure_open(job)
        consume_part(ctx, job, parts_request.item_id, parts_request.quantity_requested,
                     UpdateType.PARTS_USED)
        parts_request.status = PartsRequestStatus.APPROVED
    else:
        parts_request.status = PartsRequestStatus.REJECTED
        record_update(job.id, ctx.user_id, UpdateType.PARTS_REQUEST,
                      f"Parts request #{parts_request.id} rejected.")

    parts_request.reviewed_by_id = ctx.user_id
    parts_request.reviewed_at = datetime.utcnow()
    return parts_request
