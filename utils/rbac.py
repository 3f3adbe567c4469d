"""Role-based access control helpers.

The bearer token only proves who the caller is. Whether that account is an
administrator is read from the `users` table on every request, so revoking
the role takes effect without waiting for tokens to expire.
"""

from __future__ import annotations

from functools import wraps

from flask import current_app, g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.user import User
from utils.http import fail


def current_user():
    """The User behind the verified token, cached on `g` for the request."""
    if 'current_user' not in g:
        user_id = get_jwt_identity()
        g.current_user = db.session.get(User, user_id) if user_id else None
    return g.current_user


def require_roles(*roles: str):
    """Decorator to require one of the allowed roles.

    Verifies the JWT itself, so it replaces @jwt_required() on the route.
    """

    allowed = {str(r).lower() for r in roles if str(r).strip()}

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            verify_jwt_in_request()
            try:
                user = current_user()
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error('Role check failed: %s', e)
                return fail('Role check failed', 500, reason='role_check_failed')
            if user is None:
                return fail('No profile for this account', 403, reason='no_profile')
            if str(user.role or '').lower() not in allowed:
                return fail('Admin access required', 403, reason='not_admin')
            if not user.is_active:
                return fail('Account is deactivated', 403, reason='inactive')
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def require_admin(fn):
    return require_roles('admin')(fn)
