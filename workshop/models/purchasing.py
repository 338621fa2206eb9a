"""
Supplier and purchase order models.
"""
import enum
from datetime import datetime
from decimal import Decimal

from workshop.database import db, enum_values


class PurchaseOrderStatus(str, enum.Enum):
    """Purchase order status enumeration."""
    PENDING = "pending"
    ORDERED = "ordered"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class Supplier(db.Model):
    __tablename__ = 'suppliers'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    contact_person = db.Column(db.String(100))
    phone = db.Column(db.String(20))
    email = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    purchase_orders = db.relationship('PurchaseOrder', back_populates='supplier', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'contact_person': self.contact_person,
            'phone': self.phone,
            'email': self.email,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class PurchaseOrder(db.Model):
    __tablename__ = 'purchase_orders'

    id = db.Column(db.Integer, primary_key=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey('suppliers.id'), nullable=False, index=True)
    status = db.Column(db.Enum(PurchaseOrderStatus, native_enum=False, length=20,
                       values_callable=enum_values), nullable=False,
                       default=PurchaseOrderStatus.PENDING)
    total_cost = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    received_at = db.Column(db.DateTime)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier = db.relationship('Supplier', back_populates='purchase_orders')
    lines = db.relationship('PurchaseOrderLine', back_populates='purchase_order',
                            order_by='PurchaseOrderLine.id', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'supplier_id': self.supplier_id,
            'supplier_name': self.supplier.name if self.supplier else None,
            'status': self.status.value,
            'total_cost': str(self.total_cost),
            'created_by_id': self.created_by_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'received_at': self.received_at.isoformat() if self.received_at else None,
            'lines': [line.to_dict() for line in self.lines]
        }


class PurchaseOrderLine(db.Model):
    __tablename__ = 'purchase_order_lines'
    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_purchase_order_lines_quantity_positive'),
    )

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey('purchase_orders.id'), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)

    purchase_order = db.relationship('PurchaseOrder', back_populates='lines')
    item = db.relationship('InventoryItem')

    @property
    def line_total(self):
        return Decimal(self.quantity) * Decimal(self.unit_price)

    def to_dict(self):
        return {
            'id': self.id,
            'item_id': self.item_id,
            'item_name': self.item.name if self.item else None,
            'item_number': self.item.item_number if self.item else None,
            'quantity': self.quantity,
            'unit_price': str(self.unit_price),
            'line_total': str(self.line_total)
        }
