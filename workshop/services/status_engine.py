"""
Assignment & status engine for job cards.

All status changes go through here so ``completed_at`` is kept in step
with the status: it is set exactly while the card is in a completed-type
status and cleared the moment it leaves one.

Policy: a job in active work (assigned, in progress, on hold, waiting for
parts) must have a mechanic assigned. This is enforced on every path.
"""
import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from workshop.database import db
from workshop.errors import (
    ConflictError, InvalidLaborCost, InvalidStatus, ValidationError,
)
from workshop.models import (
    ACTIVE_WORK_STATUSES, COMPLETED_STATUSES, WORKSHOP_STATUSES, JobStatus, UpdateType, User,
    UserRole,
)
from workshop.services.job_cards import (
    JOB_EDITORS, WORKSHOP_FLOOR, ensure_assigned_to_caller, ensure_open, lock_job_card, money,
    record_update, replace_parts_for_job_card,
)
from workshop.services.transactions import transactional

logger = logging.getLogger(__name__)

TECHNICIAN_STATUSES = frozenset({
    JobStatus.IN_PROGRESS,
    JobStatus.ON_HOLD,
    JobStatus.WAITING_FOR_PARTS,
    JobStatus.ASSESSMENT_REQUESTED,
    JobStatus.COMPLETED,
})
ASSIGNABLE_STATUSES = frozenset({
    JobStatus.PENDING,
    JobStatus.ASSIGNED,
    JobStatus.WAITING_FOR_PARTS,
})
FINANCE_STATUSES = frozenset({JobStatus.FINANCE_RECEIVED, JobStatus.FINANCE_CANCELLED})
FINANCE_REVIEWABLE = frozenset({JobStatus.COMPLETED, JobStatus.INVOICED})
FINANCE_ROLES = (UserRole.ADMIN, UserRole.SUPERVISOR)


def parse_status(value, allowed):
    try:
        status = JobStatus(value)
    except ValueError:
        raise InvalidStatus(f"Invalid status provided: {value!r}.") from None
    if status not in allowed:
        raise InvalidStatus(f"Status '{status.value}' cannot be set here.")
    return status


def parse_labor_cost(value):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidLaborCost() from None
    if not amount.is_finite() or amount < 0:
        raise InvalidLaborCost()
    return amount.quantize(Decimal('0.01'))


def validate_staff(user_id, role, label):
    """Return the active user ``user_id`` holding ``role``, or raise."""
    if user_id is None:
        return None
    user = db.session.get(User, user_id)
    if user is None or not user.is_active or user.role != role:
        raise ValidationError(f'Invalid or inactive {label} selected.')
    return user


def require_mechanic_for(status, mechanic_id):
    if status in ACTIVE_WORK_STATUSES and mechanic_id is None:
        raise ValidationError(
            f"A mechanic must be assigned before a job can be marked '{status.value}'."
        )


def apply_status(job, status):
    """Set the status and keep completed_at consistent with it."""
    previous = job.status
    job.status = status
    if status == JobStatus.COMPLETED:
        job.completed_at = datetime.utcnow()
    elif status in COMPLETED_STATUSES:
        job.completed_at = job.completed_at or datetime.utcnow()
    else:
        job.completed_at = None
    return previous


@transactional
def update_job_card(ctx, job_card_id, new_status, labor_cost, mechanic_id=None,
                    service_advisor_id=None, parts=None, cancellation_reason=None):
    """
    Set status, labor cost and assignments in one go, optionally replacing
    the parts list in the same transaction.

    ``mechanic_id`` and ``service_advisor_id`` are authoritative: passing
    None clears the assignment.
    """
    ctx.require_role(*JOB_EDITORS)
    status = parse_status(new_status, WORKSHOP_STATUSES)
    labor_cost = parse_labor_cost(labor_cost)
    require_mechanic_for(status, mechanic_id)
    mechanic = validate_staff(mechanic_id, UserRole.MECHANIC, 'mechanic')
    validate_staff(service_advisor_id, UserRole.SERVICE_ADVISOR, 'service advisor')

    job = lock_job_card(job_card_id)
    ensure_open(job)

    previous = apply_status(job, status)
    job.labor_cost = labor_cost
    if mechanic_id != job.assigned_mechanic_id:
        job.assigned_at = datetime.utcnow() if mechanic_id is not None else None
        record_update(
            job.id, ctx.user_id, UpdateType.ASSIGNMENT,
            f"Job assigned to {mechanic.full_name}." if mechanic else "Mechanic unassigned."
        )
    job.assigned_mechanic_id = mechanic_id
    job.service_advisor_id = service_advisor_id
    job.cancellation_reason = (cancellation_reason or None) if status == JobStatus.CANCELLED else None

    record_update(
        job.id, ctx.user_id, UpdateType.STATUS_CHANGE,
        f"Job status changed from '{previous.value}' to '{status.value}'; "
        f"labor cost {money(labor_cost)}."
    )

    if parts:
        db.session.flush()
        replace_parts_for_job_card(ctx, job.id, parts)

    db.session.flush()
    logger.info("Job card %s updated by user %s: %s -> %s",
                job.id, ctx.user_id, previous.value, status.value)
    return job


@transactional
def assign_job(ctx, job_card_id, mechanic_id, labor_cost=None, service_advisor_id=None,
               parts=None):
    """Assign a mechanic (and optionally parts) to a job waiting for one."""
    ctx.require_role(*JOB_EDITORS)
    if mechanic_id is None:
        raise ValidationError('A mechanic is required for assignment.')
    if labor_cost is not None:
        labor_cost = parse_labor_cost(labor_cost)
    mechanic = validate_staff(mechanic_id, UserRole.MECHANIC, 'mechanic')
    validate_staff(service_advisor_id, UserRole.SERVICE_ADVISOR, 'service advisor')

    job = lock_job_card(job_card_id)
    if job.status not in ASSIGNABLE_STATUSES:
        raise ConflictError(
            "Job is not in a status that allows assignment (must be pending, assigned, "
            f"or waiting for parts). Current status: {job.status.value}"
        )

    apply_status(job, JobStatus.ASSIGNED)
    job.assigned_mechanic_id = mechanic.id
    job.assigned_at = datetime.utcnow()
    if labor_cost is not None:
        job.labor_cost = labor_cost
    if service_advisor_id is not None:
        job.service_advisor_id = service_advisor_id

    record_update(job.id, ctx.user_id, UpdateType.ASSIGNMENT,
                  f"Job assigned to {mechanic.full_name}.")

    if parts:
        db.session.flush()
        replace_parts_for_job_card(ctx, job.id, parts)

    db.session.flush()
    logger.info("Job card %s assigned to mechanic %s by user %s", job.id, mechanic.id, ctx.user_id)
    return job


@transactional
def update_technician_status(ctx, job_card_id, new_status):
    """A mechanic moving their own job along; labor and assignment are untouched."""
    ctx.require_role(*WORKSHOP_FLOOR)
    status = parse_status(new_status, TECHNICIAN_STATUSES)

    job = lock_job_card(job_card_id)
    ensure_assigned_to_caller(ctx, job)
    ensure_open(job)
    require_mechanic_for(status, job.assigned_mechanic_id)

    previous = apply_status(job, status)
    record_update(job.id, ctx.user_id, UpdateType.STATUS_CHANGE,
                  f"Job status changed from '{previous.value}' to '{status.value}'")
    return job


@transactional
def update_finance_status(ctx, job_card_id, new_status, reason=None):
    """Finance sign-off: mark a finished job as paid for, or cancel it."""
    ctx.require_role(*FINANCE_ROLES)
    status = parse_status(new_status, FINANCE_STATUSES)
    reason = (reason or '').strip() or None
    if status == JobStatus.FINANCE_CANCELLED and not reason:
        raise ValidationError('A cancellation reason is required.')

    job = lock_job_card(job_card_id)
    if job.status not in FINANCE_REVIEWABLE:
        raise ConflictError(
            f"Only completed or invoiced jobs can be reviewed by finance. "
            f"Current status: {job.status.value}"
        )

    previous = apply_status(job, status)
    job.cancellation_reason = reason if status == JobStatus.FINANCE_CANCELLED else None

    description = f"Finance changed status from '{previous.value}' to '{status.value}'"
    if reason and status == JobStatus.FINANCE_CANCELLED:
        description += f": {reason}"
    record_update(job.id, ctx.user_id, UpdateType.FINANCE, description)
    return job
