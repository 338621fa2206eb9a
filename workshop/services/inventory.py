"""
Inventory store: spare-part lookup and stock movements.

``reserve_and_deduct`` and ``credit`` never commit on their own; they run
inside the caller's transaction so the stock change and the caller's log
rows land together.
"""
import logging
from decimal import Decimal

from sqlalchemy import or_, update

from workshop.database import db
from workshop.errors import ConflictError, InsufficientStock, NotFoundError, ValidationError
from workshop.models import InventoryItem, UsageLog, UsageLogType, UserRole
from workshop.services.transactions import transactional

logger = logging.getLogger(__name__)

STOCK_MANAGERS = (UserRole.ADMIN, UserRole.WORKSHOP_MANAGER, UserRole.PARTS_MANAGER)


def get_item(item_id):
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise NotFoundError(f'Part with ID {item_id} not found in inventory.')
    return item


def list_items(search=None, category=None, low_stock_only=False):
    query = InventoryItem.query
    if search:
        pattern = f'%{search.strip()}%'
        query = query.filter(or_(InventoryItem.name.ilike(pattern),
                                 InventoryItem.item_number.ilike(pattern)))
    if category:
        query = query.filter(InventoryItem.category == category)
    if low_stock_only:
        query = query.filter(InventoryItem.quantity_on_hand <= InventoryItem.min_stock_level)
    return query.order_by(InventoryItem.name).all()


def _locked_item(item_id):
    item = (
        db.session.query(InventoryItem)
        .filter(InventoryItem.id == item_id)
        .with_for_update()
        .populate_existing()
        .one_or_none()
    )
    if item is None:
        raise NotFoundError(f'Part with ID {item_id} not found in inventory.')
    return item


def reserve_and_deduct(item_id, quantity):
    """
    Take ``quantity`` units of an item out of stock.

    Reads the row with a locking read, rejects the request if stock is short,
    then decrements with a guarded UPDATE so the row can never go negative
    even on databases that ignore FOR UPDATE.
    """
    if quantity <= 0:
        raise ValidationError('Quantity must be a positive whole number.')

    item = _locked_item(item_id)
    if item.quantity_on_hand < quantity:
        raise InsufficientStock(item.name, item.quantity_on_hand, quantity)

    result = db.session.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id, InventoryItem.quantity_on_hand >= quantity)
        .values(quantity_on_hand=InventoryItem.quantity_on_hand - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.refresh(item)
        raise InsufficientStock(item.name, item.quantity_on_hand, quantity)

    db.session.refresh(item)
    return item


def credit(item_id, quantity):
    """Put ``quantity`` units back into stock."""
    if quantity <= 0:
        raise ValidationError('Quantity must be a positive whole number.')

    item = _locked_item(item_id)
    db.session.execute(
        update(InventoryItem)
        .where(InventoryItem.id == item_id)
        .values(quantity_on_hand=InventoryItem.quantity_on_hand + quantity)
        .execution_options(synchronize_session=False)
    )
    db.session.refresh(item)
    return item


def log_usage(item_id, quantity_change, log_type, logged_by_id, job_card_id=None,
              purchase_order_id=None, note=None):
    entry = UsageLog(
        item_id=item_id,
        quantity_change=quantity_change,
        log_type=log_type,
        logged_by_id=logged_by_id,
        job_card_id=job_card_id,
        purchase_order_id=purchase_order_id,
        note=note,
    )
    db.session.add(entry)
    return entry


def list_usage_logs(item_id=None, limit=200):
    query = UsageLog.query
    if item_id is not None:
        query = query.filter(UsageLog.item_id == item_id)
    return query.order_by(UsageLog.logged_at.desc(), UsageLog.id.desc()).limit(limit).all()


@transactional
def create_item(ctx, item_number, name, unit_price, quantity_on_hand=0, category=None,
                description=None, unit='pcs', min_stock_level=5, location=None):
    ctx.require_role(*STOCK_MANAGERS)

    item_number = item_number.strip().upper()
    name = (name or '').strip()
    if not name:
        raise ValidationError('Item name cannot be blank.')
    if InventoryItem.query.filter_by(item_number=item_number).first():
        raise ConflictError(f'An item with number {item_number} already exists.')
    if quantity_on_hand < 0:
        raise ValidationError('Stock quantity cannot be negative')
    if unit_price < 0:
        raise ValidationError('Price cannot be negative')

    item = InventoryItem(
        item_number=item_number,
        name=name,
        category=category,
        description=description,
        unit=unit,
        quantity_on_hand=quantity_on_hand,
        unit_price=Decimal(unit_price),
        min_stock_level=min_stock_level,
        location=location,
    )
    db.session.add(item)
    db.session.flush()

    if quantity_on_hand:
        log_usage(item.id, quantity_on_hand, UsageLogType.ADJUSTMENT, ctx.user_id,
                  note='Opening stock')
    logger.info("Inventory item %s created by user %s", item.item_number, ctx.user_id)
    return item


@transactional
def update_item(ctx, item_id, **changes):
    """Update descriptive fields and price. Stock moves go through ``adjust_stock``."""
    ctx.require_role(*STOCK_MANAGERS)
    item = get_item(item_id)

    if 'name' in changes and changes['name'] is not None:
        changes['name'] = changes['name'].strip()
        if not changes['name']:
            raise ValidationError('Item name cannot be blank.')

    if 'unit_price' in changes and changes['unit_price'] is not None:
        if changes['unit_price'] < 0:
            raise ValidationError('Price cannot be negative')
        item.unit_price = Decimal(changes.pop('unit_price'))

    for field in ('name', 'category', 'description', 'unit', 'min_stock_level', 'location'):
        value = changes.get(field)
        if value is not None:
            setattr(item, field, value)
    return item


@transactional
def adjust_stock(ctx, item_id, new_quantity, reason):
    """Set the on-hand count after a physical check, logging the difference."""
    ctx.require_role(*STOCK_MANAGERS)
    if new_quantity < 0:
        raise ValidationError('Stock quantity cannot be negative')
    if not reason or not reason.strip():
        raise ValidationError('A reason is required for stock adjustments.')

    item = _locked_item(item_id)
    difference = new_quantity - item.quantity_on_hand
    if difference > 0:
        credit(item.id, difference)
    elif difference < 0:
        reserve_and_deduct(item.id, -difference)

    if difference:
        log_usage(item.id, difference, UsageLogType.ADJUSTMENT, ctx.user_id, note=reason.strip())
        logger.info("Stock for %s adjusted by %+d (user %s)", item.item_number, difference, ctx.user_id)
    return item
