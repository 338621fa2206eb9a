"""
Authentication, per-request caller context and CSRF verification.

Views never read identity from ambient state. Each protected view is
wrapped with ``with_context`` and receives a ``RequestContext`` as its
first argument; core operations take that context explicitly.
"""
import hmac
import secrets
from dataclasses import dataclass
from functools import wraps

from flask import request
from flask_jwt_extended import (
    JWTManager, create_access_token, get_jwt, get_jwt_identity, verify_jwt_in_request,
)

from workshop.database import db
from workshop.errors import AuthenticationError, AuthorizationError, error_response
from workshop.models import User, UserRole

jwt = JWTManager()

CSRF_HEADER = 'X-CSRF-Token'
MUTATING_METHODS = frozenset({'POST', 'PUT', 'PATCH', 'DELETE'})


@dataclass(frozen=True)
class RequestContext:
    """Who is calling, as established once per request."""

    user_id: int
    user_type: UserRole
    csrf_token: str = ''

    def has_role(self, *roles):
        return self.user_type in roles

    def require_role(self, *roles):
        if not self.has_role(*roles):
            raise AuthorizationError(
                'Unauthorized access. Your user type does not have permission to perform this action.'
            )


def verify_csrf(presented, expected):
    if not presented or not expected or not hmac.compare_digest(
        presented.encode('utf-8'), expected.encode('utf-8')
    ):
        raise AuthorizationError('CSRF token mismatch.')


def issue_token(user):
    """Create an access token for ``user`` and the CSRF token bound to it."""
    csrf_token = secrets.token_urlsafe(32)
    access_token = create_access_token(
        identity=str(user.id),
        additional_claims={'user_type': user.role.value, 'csrf': csrf_token},
    )
    return access_token, csrf_token


def authenticate(username, password):
    """Return the active user matching the credentials."""
    user = User.query.filter_by(username=username.strip().lower()).first()
    if not user or not user.check_password(password):
        raise AuthenticationError('Invalid username or password')
    if not user.is_active:
        raise AuthorizationError('Account is deactivated. Please contact administrator.')
    return user


def current_context(check_csrf=False):
    """Build the caller's context from a verified access token."""
    verify_jwt_in_request()
    claims = get_jwt()
    if check_csrf:
        verify_csrf(request.headers.get(CSRF_HEADER), claims.get('csrf', ''))
    user = db.session.get(User, int(get_jwt_identity()))
    if not user or not user.is_active:
        raise AuthenticationError('Invalid or inactive user')
    # The role on record wins over whatever was in the token at login time.
    return RequestContext(user_id=user.id, user_type=user.role, csrf_token=claims.get('csrf', ''))


def with_context(view):
    """Authenticate the request, check CSRF on writes, pass the context in."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        ctx = current_context(check_csrf=request.method in MUTATING_METHODS)
        return view(ctx, *args, **kwargs)

    return wrapper


@jwt.unauthorized_loader
def _missing_token(reason):
    return error_response(reason, 'unauthorized', 401)


@jwt.invalid_token_loader
def _invalid_token(reason):
    return error_response(reason, 'unauthorized', 401)


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return error_response('Token has expired', 'unauthorized', 401)
