"""
User accounts.
"""
import logging

from workshop.database import db
from workshop.errors import ConflictError, NotFoundError, ValidationError
from workshop.models import User, UserRole
from workshop.services.transactions import transactional

logger = logging.getLogger(__name__)


def list_users(role=None, active_only=True):
    query = User.query
    if role:
        query = query.filter(User.role == role)
    if active_only:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.full_name).all()


def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found.')
    return user


@transactional
def create_user(ctx, username, email, password, full_name, role, phone=None):
    ctx.require_role(UserRole.ADMIN)
    username = username.strip().lower()
    email = email.strip().lower()

    if len(password) < 8:
        raise ValidationError('Password must be at least 8 characters long')
    if User.query.filter_by(username=username).first():
        raise ConflictError('Username already exists')
    if User.query.filter_by(email=email).first():
        raise ConflictError('Email already exists')

    user = User(
        username=username,
        email=email,
        full_name=full_name.strip(),
        role=UserRole(role),
        phone=phone,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    logger.info("User %s (%s) created by user %s", user.username, user.role.value, ctx.user_id)
    return user


@transactional
def set_user_active(ctx, user_id, is_active):
    ctx.require_role(UserRole.ADMIN)
    user = get_user(user_id)
    if user.id == ctx.user_id and not is_active:
        raise ConflictError('You cannot deactivate your own account.')
    user.is_active = is_active
    return user
