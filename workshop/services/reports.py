"""
Read-only workshop reports.
"""
import logging
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from workshop.database import db
from workshop.models import (
    InventoryItem, Invoice, JobCard, JobStatus, PartsRequest, PartsRequestStatus,
    PurchaseOrder, PurchaseOrderStatus, User, UserRole, Vehicle,
)

logger = logging.getLogger(__name__)

REPORT_ROLES = (UserRole.ADMIN, UserRole.WORKSHOP_MANAGER, UserRole.SUPERVISOR)

OPEN_STATUSES = (
    JobStatus.PENDING, JobStatus.ASSIGNED, JobStatus.IN_PROGRESS, JobStatus.ON_HOLD,
    JobStatus.ASSESSMENT_REQUESTED, JobStatus.WAITING_FOR_PARTS,
)


def dashboard_stats(ctx):
    """Headline counts for the workshop dashboard."""
    ctx.require_role(*REPORT_ROLES)
    try:
        low_stock = InventoryItem.query.filter(
            InventoryItem.quantity_on_hand <= InventoryItem.min_stock_level
        )
        start_of_day = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        recent_jobs = JobCard.query.order_by(JobCard.created_at.desc(), JobCard.id.desc()).limit(5).all()

        return {
            'total_vehicles': Vehicle.query.count(),
            'total_drivers': User.query.filter(User.role == UserRole.DRIVER).count(),
            'open_jobs': JobCard.query.filter(JobCard.status.in_(OPEN_STATUSES)).count(),
            'new_jobs_today': JobCard.query.filter(JobCard.created_at >= start_of_day).count(),
            'pending_assignments': JobCard.query.filter(JobCard.status == JobStatus.PENDING).count(),
            'awaiting_invoice': JobCard.query.filter(JobCard.status == JobStatus.COMPLETED).count(),
            'pending_parts_requests': PartsRequest.query.filter(
                PartsRequest.status == PartsRequestStatus.PENDING).count(),
            'open_purchase_orders': PurchaseOrder.query.filter(PurchaseOrder.status.in_(
                (PurchaseOrderStatus.PENDING, PurchaseOrderStatus.ORDERED))).count(),
            'low_stock_items': low_stock.count(),
            'recent_job_cards': [job.to_dict() for job in recent_jobs],
            'low_stock_alerts': [
                item.to_dict() for item in
                low_stock.order_by(InventoryItem.quantity_on_hand.asc()).limit(5).all()
            ],
        }
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to build dashboard statistics")
        return {
            'total_vehicles': 0,
            'total_drivers': 0,
            'open_jobs': 0,
            'new_jobs_today': 0,
            'pending_assignments': 0,
            'awaiting_invoice': 0,
            'pending_parts_requests': 0,
            'open_purchase_orders': 0,
            'low_stock_items': 0,
            'recent_job_cards': [],
            'low_stock_alerts': [],
        }


def job_card_summary(ctx, start=None, end=None):
    """Job cards opened in the period, counted by status."""
    ctx.require_role(*REPORT_ROLES)
    counts = {status.value: 0 for status in JobStatus}
    try:
        query = db.session.query(JobCard.status, func.count(JobCard.id))
        if start:
            query = query.filter(JobCard.created_at >= start)
        if end:
            query = query.filter(JobCard.created_at < end)
        for status, count in query.group_by(JobCard.status).all():
            counts[status.value] = count
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to build job card summary")
    return {'by_status': counts, 'total': sum(counts.values())}


def revenue_summary(ctx, start=None, end=None):
    """Invoiced labor and parts for the period."""
    ctx.require_role(*REPORT_ROLES)
    totals = {
        'invoice_count': 0,
        'labor_total': '0.00',
        'parts_total': '0.00',
        'grand_total': '0.00',
    }
    try:
        query = db.session.query(
            func.count(Invoice.id),
            func.coalesce(func.sum(Invoice.labor_cost), 0),
            func.coalesce(func.sum(Invoice.parts_cost), 0),
            func.coalesce(func.sum(Invoice.total_amount), 0),
        )
        if start:
            query = query.filter(Invoice.invoice_date >= start)
        if end:
            query = query.filter(Invoice.invoice_date < end)
        count, labor, parts, grand = query.one()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Failed to build revenue summary")
        return totals

    cents = Decimal('0.01')
    totals.update({
        'invoice_count': count,
        'labor_total': str(Decimal(str(labor)).quantize(cents)),
        'parts_total': str(Decimal(str(parts)).quantize(cents)),
        'grand_total': str(Decimal(str(grand)).quantize(cents)),
    })
    return totals
