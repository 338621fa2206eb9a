"""
User routes. Administrators only, apart from looking up mechanics and
advisors for assignment forms.
"""
from flask import Blueprint, jsonify, request

from workshop.auth import with_context
from workshop.errors import ValidationError
from workshop.models import STAFF_ROLES, UserRole
from workshop.schemas import UserCreate, UserStatusChange, parse_payload
from workshop.services import users

users_bp = Blueprint('users', __name__, url_prefix='/users')


@users_bp.route('', methods=['GET'])
@with_context
def list_users(ctx):
    ctx.require_role(*STAFF_ROLES)
    role = request.args.get('role')
    if role:
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationError(f'Invalid role: {role!r}') from None
    if not ctx.has_role(UserRole.ADMIN) and role not in (UserRole.MECHANIC, UserRole.SERVICE_ADVISOR):
        ctx.require_role(UserRole.ADMIN)

    return jsonify({
        'success': True,
        'data': [user.to_dict() for user in users.list_users(role=role)]
    }), 200


@users_bp.route('', methods=['POST'])
@with_context
def create_user(ctx):
    payload = parse_payload(UserCreate, request.get_json(silent=True))
    user = users.create_user(
        ctx,
        username=payload.username,
        email=payload.email,
        password=payload.password,
        full_name=payload.full_name,
        role=payload.role,
        phone=payload.phone,
    )
    return jsonify({
        'success': True,
        'message': 'User created successfully',
        'data': user.to_dict()
    }), 201


@users_bp.route('/<int:user_id>/status', methods=['PUT'])
@with_context
def set_user_status(ctx, user_id):
    payload = parse_payload(UserStatusChange, request.get_json(silent=True))
    user = users.set_user_active(ctx, user_id, payload.is_active)
    return jsonify({
        'success': True,
        'message': 'User activated' if user.is_active else 'User deactivated',
        'data': user.to_dict()
    }), 200
