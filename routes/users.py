"""Admin user routes - profile check and user lookup for the points screen."""

from flask import Blueprint, request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models.user import User
from utils.http import fail, ok
from utils.rbac import current_user, require_admin

users_bp = Blueprint('users', __name__)

_SEARCH_LIMIT = 50


@users_bp.route('/me', methods=['GET'])
@require_admin
def get_admin_me():
    """Confirm the caller is an admin and return their profile"""
    return ok({'profile': current_user().to_dict(include_profile=True)})


@users_bp.route('/users', methods=['GET'])
@require_admin
def search_users():
    """Search users by email, name or label (max 50, ordered by email)"""
    q = (request.args.get('q') or '').strip()

    try:
        query = User.query
        if q:
            pattern = f'%{q}%'
            query = query.filter(
                or_(
                    User.email.ilike(pattern),
                    User.name.ilike(pattern),
                    User.label.ilike(pattern),
                )
            )
        rows = query.order_by(User.email.asc()).limit(_SEARCH_LIMIT).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    return ok({'rows': [u.to_dict() for u in rows]})
