"""
Authentication and system routes.
"""
import logging
from datetime import datetime

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from workshop.auth import authenticate, issue_token, with_context
from workshop.database import db
from workshop.schemas import LoginRequest, parse_payload
from workshop.services.users import get_user

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')
system_bp = Blueprint('system', __name__, url_prefix='/system')


@auth_bp.route('/login', methods=['POST'])
def login():
    """User login"""
    payload = parse_payload(LoginRequest, request.get_json(silent=True))
    user = authenticate(payload.username, payload.password)
    access_token, csrf_token = issue_token(user)
    logger.info("User %s logged in", user.username)

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'access_token': access_token,
        'csrf_token': csrf_token,
        'user': user.to_dict()
    }), 200


@auth_bp.route('/verify', methods=['GET'])
@with_context
def verify_token(ctx):
    """Verify JWT token"""
    return jsonify({
        'success': True,
        'user': get_user(ctx.user_id).to_dict()
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@with_context
def logout(ctx):
    """Logout user (client-side token removal)"""
    return jsonify({
        'success': True,
        'message': 'Logged out successfully'
    }), 200


@system_bp.route('/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    database = 'connected'
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        database = 'unavailable'

    return jsonify({
        'success': True,
        'status': 'healthy' if database == 'connected' else 'degraded',
        'database': database,
        'version': current_app.config.get('APP_VERSION'),
        'timestamp': datetime.utcnow().isoformat()
    }), 200
