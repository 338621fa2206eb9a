"""
Suppliers, purchase orders and restocking on receipt.
"""
import logging
from datetime import datetime
from decimal import Decimal

from workshop.database import db
from workshop.errors import ConflictError, NotFoundError, ValidationError
from workshop.models import (
    PurchaseOrder, PurchaseOrderLine, PurchaseOrderStatus, Supplier, UsageLogType, UserRole,
)
from workshop.services import inventory
from workshop.services.transactions import transactional

logger = logging.getLogger(__name__)

PURCHASING_ROLES = (UserRole.ADMIN, UserRole.PARTS_MANAGER)

ALLOWED_TRANSITIONS = {
    PurchaseOrderStatus.PENDING: {
        PurchaseOrderStatus.ORDERED, PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED,
    },
    PurchaseOrderStatus.ORDERED: {PurchaseOrderStatus.RECEIVED, PurchaseOrderStatus.CANCELLED},
    PurchaseOrderStatus.RECEIVED: set(),
    PurchaseOrderStatus.CANCELLED: set(),
}


def get_supplier(supplier_id):
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise NotFoundError('Supplier not found.')
    return supplier


def list_suppliers():
    return Supplier.query.order_by(Supplier.name).all()


@transactional
def create_supplier(ctx, name, contact_person=None, phone=None, email=None):
    ctx.require_role(*PURCHASING_ROLES)
    name = (name or '').strip()
    if not name:
        raise ValidationError('Supplier name is required.')
    if Supplier.query.filter_by(name=name).first():
        raise ConflictError('A supplier with this name already exists.')

    supplier = Supplier(name=name, contact_person=contact_person, phone=phone, email=email)
    db.session.add(supplier)
    db.session.flush()
    return supplier


@transactional
def update_supplier(ctx, supplier_id, **changes):
    ctx.require_role(*PURCHASING_ROLES)
    supplier = get_supplier(supplier_id)
    name = (changes.get('name') or '').strip()
    if name and name != supplier.name and Supplier.query.filter_by(name=name).first():
        raise ConflictError('A supplier with this name already exists.')
    for field in ('name', 'contact_person', 'phone', 'email'):
        if changes.get(field) is not None:
            setattr(supplier, field, changes[field])
    return supplier


@transactional
def delete_supplier(ctx, supplier_id):
    ctx.require_role(*PURCHASING_ROLES)
    supplier = get_supplier(supplier_id)
    if supplier.purchase_orders.count():
        raise ConflictError('Cannot delete a supplier with existing purchase orders.')
    db.session.delete(supplier)


def get_purchase_order(po_id):
    order = db.session.get(PurchaseOrder, po_id)
    if order is None:
        raise NotFoundError('Purchase order not found.')
    return order


def list_purchase_orders(status=None):
    query = PurchaseOrder.query
    if status:
        query = query.filter(PurchaseOrder.status == status)
    return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).all()


@transactional
def create_purchase_order(ctx, supplier_id, lines):
    """
    Record an order with a supplier. ``lines`` is a sequence of
    ``(item_id, quantity, unit_price)``; the total is derived from them.
    """
    ctx.require_role(*PURCHASING_ROLES)
    if not lines:
        raise ValidationError('Supplier and items are required.')
    supplier = get_supplier(supplier_id)

    order = PurchaseOrder(supplier=supplier, created_by_id=ctx.user_id,
                          status=PurchaseOrderStatus.PENDING)
    total = Decimal('0.00')
    for item_id, quantity, unit_price in lines:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f'Invalid quantity for part ID {item_id}')
        unit_price = Decimal(str(unit_price))
        if unit_price < 0:
            raise ValidationError(f'Invalid unit price for part ID {item_id}')
        item = inventory.get_item(item_id)
        line = PurchaseOrderLine(item=item, quantity=quantity, unit_price=unit_price)
        order.lines.append(line)
        total += line.line_total

    order.total_cost = total
    db.session.add(order)
    db.session.flush()
    logger.info("Purchase order %s created for supplier %s by user %s",
                order.id, supplier.name, ctx.user_id)
    return order


@transactional
def update_purchase_order_status(ctx, po_id, new_status):
    """Move an order along; on receipt every line is credited to stock."""
    ctx.require_role(*PURCHASING_ROLES)
    try:
        status = PurchaseOrderStatus(new_status)
    except ValueError:
        raise ValidationError(f'Invalid purchase order status: {new_status!r}') from None

    order = (
        db.session.query(PurchaseOrder)
        .filter(PurchaseOrder.id == po_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if order is None:
        raise NotFoundError('Purchase order not found.')
    if status not in ALLOWED_TRANSITIONS[order.status]:
        raise ConflictError(
            f"Purchase order cannot move from '{order.status.value}' to '{status.value}'."
        )

    order.status = status
    if status == PurchaseOrderStatus.RECEIVED:
        order.received_at = datetime.utcnow()
        for line in sorted(order.lines, key=lambda line: line.item_id):
            inventory.credit(line.item_id, line.quantity)
            inventory.log_usage(line.item_id, line.quantity, UsageLogType.RECEIVED, ctx.user_id,
                                purchase_order_id=order.id)
        logger.info("Purchase order %s received; %d lines credited to stock",
                    order.id, len(order.lines))
    return order


@transactional
def delete_purchase_order(ctx, po_id):
    ctx.require_role(*PURCHASING_ROLES)
    order = get_purchase_order(po_id)
    if order.status not in (PurchaseOrderStatus.PENDING, PurchaseOrderStatus.CANCELLED):
        raise ConflictError('Only pending or cancelled purchase orders can be deleted.')
    db.session.delete(order)
