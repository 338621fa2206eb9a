"""
Job card models: the card itself, the parts consumed against it, the
append-only update log and mechanics' parts requests.
"""
import enum
from datetime import datetime
from decimal import Decimal

from workshop.database import db, enum_values


class JobStatus(str, enum.Enum):
    """Job card status enumeration."""
    PENDING = "pending"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    ASSESSMENT_REQUESTED = "assessment_requested"
    WAITING_FOR_PARTS = "waiting_for_parts"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    INVOICED = "invoiced"
    FINANCE_RECEIVED = "finance_received"
    FINANCE_CANCELLED = "finance_cancelled"


# Statuses a workshop user may set directly. Invoiced and the finance
# statuses are reached only through invoicing and finance review.
WORKSHOP_STATUSES = frozenset({
    JobStatus.PENDING,
    JobStatus.ASSIGNED,
    JobStatus.IN_PROGRESS,
    JobStatus.ON_HOLD,
    JobStatus.ASSESSMENT_REQUESTED,
    JobStatus.WAITING_FOR_PARTS,
    JobStatus.COMPLETED,
    JobStatus.CANCELLED,
})

# Statuses that mean someone is working on the vehicle.
ACTIVE_WORK_STATUSES = frozenset({
    JobStatus.ASSIGNED,
    JobStatus.IN_PROGRESS,
    JobStatus.ON_HOLD,
    JobStatus.WAITING_FOR_PARTS,
})

# completed_at is set exactly when the card is in one of these.
COMPLETED_STATUSES = frozenset({
    JobStatus.COMPLETED,
    JobStatus.INVOICED,
    JobStatus.FINANCE_RECEIVED,
})

CLOSED_STATUSES = frozenset({
    JobStatus.INVOICED,
    JobStatus.FINANCE_RECEIVED,
    JobStatus.FINANCE_CANCELLED,
})


class UpdateType:
    STATUS_CHANGE = "Status Change"
    ASSIGNMENT = "Assignment"
    PARTS_ASSIGNMENT = "Parts Assignment"
    PARTS_RETURNED = "Parts Returned"
    PARTS_USED = "Parts Used"
    PARTS_REQUEST = "Parts Request"
    WORK_LOG = "Work Log"
    INVOICE = "Invoice"
    FINANCE = "Finance"


class JobCard(db.Model):
    """Job card database model."""

    __tablename__ = 'job_cards'
    __table_args__ = (
        db.CheckConstraint('labor_cost >= 0', name='ck_job_cards_labor_cost_non_negative'),
    )

    id = db.Column(db.Integer, primary_key=True)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=False, index=True)
    issue_description = db.Column(db.Text, nullable=False)
    urgency = db.Column(db.String(10), nullable=False, default='medium')
    status = db.Column(db.Enum(JobStatus, native_enum=False, length=32,
                       values_callable=enum_values), nullable=False,
                       default=JobStatus.PENDING, index=True)
    labor_cost = db.Column(db.Numeric(12, 2), nullable=False, default=Decimal('0.00'))
    assigned_mechanic_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    service_advisor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    cancellation_reason = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    assigned_at = db.Column(db.DateTime)
    completed_at = db.Column(db.DateTime)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    vehicle = db.relationship('Vehicle', back_populates='job_cards')
    assigned_mechanic = db.relationship('User', foreign_keys=[assigned_mechanic_id])
    service_advisor = db.relationship('User', foreign_keys=[service_advisor_id])
    created_by = db.relationship('User', foreign_keys=[created_by_id])
    parts = db.relationship('JobCardPart', back_populates='job_card',
                            order_by='JobCardPart.id', cascade='all, delete-orphan')
    updates = db.relationship('JobCardUpdate', back_populates='job_card',
                              order_by='JobCardUpdate.id', cascade='all, delete-orphan')
    invoice = db.relationship('Invoice', back_populates='job_card', uselist=False)

    @property
    def parts_cost(self):
        return sum((part.line_total for part in self.parts), Decimal('0.00'))

    def to_dict(self, include_parts=False):
        data = {
            'id': self.id,
            'vehicle_id': self.vehicle_id,
            'vehicle_registration': self.vehicle.registration_number if self.vehicle else None,
            'issue_description': self.issue_description,
            'urgency': self.urgency,
            'status': self.status.value,
            'labor_cost': str(self.labor_cost),
            'assigned_mechanic_id': self.assigned_mechanic_id,
            'mechanic_name': self.assigned_mechanic.full_name if self.assigned_mechanic else None,
            'service_advisor_id': self.service_advisor_id,
            'service_advisor_name': self.service_advisor.full_name if self.service_advisor else None,
            'created_by_id': self.created_by_id,
            'cancellation_reason': self.cancellation_reason,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'assigned_at': self.assigned_at.isoformat() if self.assigned_at else None,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None
        }
        if include_parts:
            data['parts'] = [part.to_dict() for part in self.parts]
            data['parts_cost'] = str(self.parts_cost)
        return data


class JobCardPart(db.Model):
    """A spare part consumed by a job, priced at the moment it was used."""

    __tablename__ = 'job_card_parts'
    __table_args__ = (
        db.CheckConstraint('quantity_used > 0', name='ck_job_card_parts_quantity_positive'),
    )

    id = db.Column(db.Integer, primary_key=True)
    job_card_id = db.Column(db.Integer, db.ForeignKey('job_cards.id'), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=False)
    quantity_used = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Numeric(12, 2), nullable=False)
    assigned_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    job_card = db.relationship('JobCard', back_populates='parts')
    item = db.relationship('InventoryItem')

    @property
    def line_total(self):
        return Decimal(self.quantity_used) * Decimal(self.unit_price)

    def to_dict(self):
        return {
            'id': self.id,
            'job_card_id': self.job_card_id,
            'item_id': self.item_id,
            'item_name': self.item.name if self.item else None,
            'item_number': self.item.item_number if self.item else None,
            'quantity_used': self.quantity_used,
            'unit_price': str(self.unit_price),
            'line_total': str(self.line_total),
            'assigned_by_id': self.assigned_by_id,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class JobCardUpdate(db.Model):
    """Append-only history of what happened to a job card."""

    __tablename__ = 'job_card_updates'

    id = db.Column(db.Integer, primary_key=True)
    job_card_id = db.Column(db.Integer, db.ForeignKey('job_cards.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    update_type = db.Column(db.String(40), nullable=False)
    description = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    job_card = db.relationship('JobCard', back_populates='updates')
    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'job_card_id': self.job_card_id,
            'user_id': self.user_id,
            'user_name': self.user.full_name if self.user else None,
            'update_type': self.update_type,
            'description': self.description,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class PartsRequestStatus:
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PartsRequest(db.Model):
    """A mechanic asking the parts desk for stock on one of their jobs."""

    __tablename__ = 'parts_requests'
    __table_args__ = (
        db.CheckConstraint('quantity_requested > 0', name='ck_parts_requests_quantity_positive'),
    )

    id = db.Column(db.Integer, primary_key=True)
    job_card_id = db.Column(db.Integer, db.ForeignKey('job_cards.id'), nullable=False, index=True)
    mechanic_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    item_id = db.Column(db.Integer, db.ForeignKey('inventory.id'), nullable=False)
    quantity_requested = db.Column(db.Integer, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=PartsRequestStatus.PENDING)
    reviewed_by_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    reviewed_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    item = db.relationship('InventoryItem')
    mechanic = db.relationship('User', foreign_keys=[mechanic_id])

    def to_dict(self):
        return {
            'id': self.id,
            'job_card_id': self.job_card_id,
            'mechanic_id': self.mechanic_id,
            'mechanic_name': self.mechanic.full_name if self.mechanic else None,
            'item_id': self.item_id,
            'item_name': self.item.name if self.item else None,
            'quantity_requested': self.quantity_requested,
            'status': self.status,
            'reviewed_by_id': self.reviewed_by_id,
            'reviewed_at': self.reviewed_at.isoformat() if self.reviewed_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
