"""
Invoice model for database.
"""
from datetime import datetime

from workshop.database import db


class Invoice(db.Model):
    """Invoice database model. Written once, never updated."""

    __tablename__ = 'invoices'

    id = db.Column(db.Integer, primary_key=True)
    job_card_id = db.Column(db.Integer, db.ForeignKey('job_cards.id'), nullable=False, unique=True)
    mechanic_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    service_advisor_id = db.Column(db.Integer, db.ForeignKey('users.id'))
    labor_cost = db.Column(db.Numeric(12, 2), nullable=False)
    parts_cost = db.Column(db.Numeric(12, 2), nullable=False)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)
    issued_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    invoice_date = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    job_card = db.relationship('JobCard', back_populates='invoice')
    issued_by = db.relationship('User', foreign_keys=[issued_by_id])

    def to_dict(self):
        return {
            'id': self.id,
            'job_card_id': self.job_card_id,
            'mechanic_id': self.mechanic_id,
            'service_advisor_id': self.service_advisor_id,
            'labor_cost': str(self.labor_cost),
            'parts_cost': str(self.parts_cost),
            'total_amount': str(self.total_amount),
            'issued_by_id': self.issued_by_id,
            'issued_by_name': self.issued_by.full_name if self.issued_by else None,
            'invoice_date': self.invoice_date.isoformat() if self.invoice_date else None
        }
