"""
Invoice generation for completed job cards.
"""
import logging
from decimal import Decimal

from workshop.database import db
from workshop.errors import InvoiceAlreadyExists, JobNotCompleted, NotFoundError
from workshop.models import CLOSED_STATUSES, Invoice, JobStatus, UpdateType, UserRole
from workshop.services.job_cards import lock_job_card, money, record_update
from workshop.services.status_engine import apply_status
from workshop.services.transactions import transactional

logger = logging.getLogger(__name__)

INVOICE_ROLES = (UserRole.ADMIN, UserRole.WORKSHOP_MANAGER, UserRole.SUPERVISOR)


def _existing_invoice(job_card_id):
    return Invoice.query.filter_by(job_card_id=job_card_id).first()


@transactional
def generate_invoice(ctx, job_card_id):
    """
    Bill a completed job: labor plus the parts it consumed, each part at
    the price recorded when it was used. The job moves to ``invoiced`` in
    the same transaction.
    """
    ctx.require_role(*INVOICE_ROLES)

    job = lock_job_card(job_card_id)
    if job.status != JobStatus.COMPLETED:
        # A card past completion that already carries an invoice is a repeat request.
        if job.status in CLOSED_STATUSES and _existing_invoice(job.id):
            raise InvoiceAlreadyExists()
        raise JobNotCompleted()
    if _existing_invoice(job.id):
        raise InvoiceAlreadyExists()

    labor_cost = Decimal(job.labor_cost or 0)
    parts_cost = sum((part.line_total for part in job.parts), Decimal('0.00'))
    invoice = Invoice(
        job_card_id=job.id,
        mechanic_id=job.assigned_mechanic_id,
        service_advisor_id=job.service_advisor_id,
        labor_cost=labor_cost,
        parts_cost=parts_cost,
        total_amount=labor_cost + parts_cost,
        issued_by_id=ctx.user_id,
    )
    db.session.add(invoice)

    apply_status(job, JobStatus.INVOICED)
    record_update(job.id, ctx.user_id, UpdateType.INVOICE,
                  f"Invoice generated for {money(invoice.total_amount)}.")
    db.session.flush()

    logger.info("Invoice %s generated for job card %s by user %s (total %s)",
                invoice.id, job.id, ctx.user_id, invoice.total_amount)
    return invoice


def get_invoice(invoice_id):
    invoice = db.session.get(Invoice, invoice_id)
    if invoice is None:
        raise NotFoundError('Invoice not found.')
    return invoice


def get_invoice_for_job_card(job_card_id):
    invoice = _existing_invoice(job_card_id)
    if invoice is None:
        raise NotFoundError('No invoice has been generated for this job card.')
    return invoice


def list_invoices(start=None, end=None):
    query = Invoice.query
    if start:
        query = query.filter(Invoice.invoice_date >= start)
    if end:
        query = query.filter(Invoice.invoice_date < end)
    return query.order_by(Invoice.invoice_date.desc(), Invoice.id.desc()).all()
