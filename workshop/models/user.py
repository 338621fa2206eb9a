"""
User model for database.
"""
import enum
from datetime import datetime

from flask_bcrypt import Bcrypt

from workshop.database import db, enum_values

bcrypt = Bcrypt()


class UserRole(str, enum.Enum):
    """User role enumeration."""
    ADMIN = "admin"
    WORKSHOP_MANAGER = "workshop_manager"
    SERVICE_ADVISOR = "service_advisor"
    MECHANIC = "mechanic"
    PARTS_MANAGER = "parts_manager"
    SUPERVISOR = "supervisor"
    DRIVER = "driver"


STAFF_ROLES = frozenset(role for role in UserRole if role is not UserRole.DRIVER)


class User(db.Model):
    """User database model."""

    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20))
    role = db.Column(db.Enum(UserRole, native_enum=False, length=32,
                       values_callable=enum_values), nullable=False, default=UserRole.DRIVER)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Verify password"""
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'phone': self.phone,
            'role': self.role.value if self.role else None,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
