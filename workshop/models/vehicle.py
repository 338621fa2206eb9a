"""
Vehicle model for database.
"""
from datetime import datetime

from workshop.database import db


class Vehicle(db.Model):
    """Vehicle database model."""

    __tablename__ = 'vehicles'

    id = db.Column(db.Integer, primary_key=True)
    driver_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True, index=True)
    make = db.Column(db.String(60), nullable=False)
    model = db.Column(db.String(60), nullable=False)
    registration_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    year = db.Column(db.Integer)
    color = db.Column(db.String(30))
    mileage = db.Column(db.Integer, nullable=False, default=0)
    engine_number = db.Column(db.String(60))
    chassis_number = db.Column(db.String(60))
    fuel_type = db.Column(db.String(20))
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    driver = db.relationship('User')
    job_cards = db.relationship('JobCard', back_populates='vehicle', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'driver_id': self.driver_id,
            'driver_name': self.driver.full_name if self.driver else None,
            'make': self.make,
            'model': self.model,
            'registration_number': self.registration_number,
            'year': self.year,
            'color': self.color,
            'mileage': self.mileage,
            'engine_number': self.engine_number,
            'chassis_number': self.chassis_number,
            'fuel_type': self.fuel_type,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
