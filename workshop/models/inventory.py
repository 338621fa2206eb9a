"""
Spare-part inventory and stock movement models.
"""
from datetime import datetime
from decimal import Decimal

from workshop.database import db


class UsageLogType:
    CONSUMED = "consumed"
    RETURNED = "returned"
    RECEIVED = "received"
    ADJUSTMENT = "adjustment"


class InventoryItem(db.Model):
    """Inventory database model."""

    __tablename__ = 'inventory'
    __table_args__ = (
        db.CheckConstraint('quantity_on_hand >= 0', name='ck_inventory_quantity_non_negative'),
    )

    id = db.Column(db.Integer, primary_key=True)
    item_number = db.Column(db.String(40), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    category = db.Column(db.String(50))
    description = db.Column(db.Text)
    unit = db.Column(db.String(20), nullable=False, default='pcs')
    quantity_on_hand = db.Column(db.Integer, nullable=False, default=0)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)
    location = db.Column(db.String(60))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_low_stock(self):
        return self.quantity_on_hand <= self.min_stock_level

    def to_dict(self):
        return {
            'id': self.id,
            'item_number': self.item_number,
            'name': self.name,
            'category': self.category,
            'description': self.description,
            'unit': self.unit,
            'quantity_on_hand': self.quantity_on_hand,
            'unit_price': str(self.unit_price),
            'min_stock_level': self.min_stock_level,
            'location': self.location,
            'is_low_stock': self.is_low_stock,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class UsageLog(db.Model):
    """Signed record of every stock movement."""

    __tablename__ = 'usage_logs'

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=False, index=True)
    job_card_id = db.Column(db.Integer, db.ForeignKey('job_cards.id'), nullable=True, index=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey('purchase_orders.id'), nullable=True)
    quantity_change = db.Column(db.Integer, nullable=False)
    log_type = db.Column(db.String(20), nullable=False)
    note = db.Column(db.String(255))
    logged_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    logged_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    item = db.relationship('InventoryItem')

    def to_dict(self):
        return {
            'id': self.id,
            'item_id': self.item_id,
            'item_name': self.item.name if self.item else None,
            'job_card_id': self.job_card_id,
            'purchase_order_id': self.purchase_order_id,
            'quantity_change': self.quantity_change,
            'log_type': self.log_type,
            'note': self.note,
            'logged_by_id': self.logged_by_id,
            'logged_at': self.logged_at.isoformat() if self.logged_at else None
        }
