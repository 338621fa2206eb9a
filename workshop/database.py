"""
Database handle and first-run initialisation.
"""
import logging

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


db = SQLAlchemy(model_class=Base)


def init_db(app, seed_admin=True):
    """Create tables and the default administrator account."""
    from workshop.models import User, UserRole

    with app.app_context():
        db.create_all()

        if seed_admin and not User.query.filter_by(username='admin').first():
            admin = User(
                username='admin',
                email='admin@workshop.local',
                full_name='System Administrator',
                role=UserRole.ADMIN,
            )
            admin.set_password('Admin@123')
            db.session.add(admin)
            db.session.commit()
            logger.info("Admin user created: admin / Admin@123")

        logger.info("Database initialized successfully")


def enum_values(enum_cls):
    """Store enum members by value rather than by name."""
    return [member.value for member in enum_cls]
