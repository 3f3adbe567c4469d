"""
Authentication routes - Login, token refresh, own profile and points
"""
from datetime import date, datetime
import re
from flask import Blueprint, current_app, request
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
)
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models.user import User
from services.errors import LedgerError
from services.points import summarize
from utils.http import fail, ok

auth_bp = Blueprint('auth', __name__)


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match((value or "").strip()))


def _access_token_for(user: User) -> str:
    return create_access_token(
        identity=str(user.id),
        additional_claims={
            'email': user.email,
            'role': user.role,
            'name': user.name,
        }
    )


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Password login

    Request body:
    {
        "email": "string",
        "password": "string"
    }
    """
    data = request.get_json(silent=True)
    if not data:
        return fail('No data provided', 400)

    email = (data.get('email') or '').strip().lower()
    password = data.get('password')

    if not email or not password:
        return fail('Email and password are required', 400)

    try:
        user = User.query.filter_by(email=email).first()

        if not user or not user.check_password(password):
            return fail('Invalid email or password', 401)

        if not user.is_active:
            return fail('Account is deactivated', 403)

        user.last_login = datetime.now()
        db.session.commit()

        current_app.logger.info('User %s logged in', user.id)
        return ok({
            'access_token': _access_token_for(user),
            'refresh_token': create_refresh_token(identity=str(user.id)),
            'user': user.to_dict(),
        })

    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(f'Login failed: {e}', 500)


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Refresh access token"""
    user = db.session.get(User, get_jwt_identity())

    if not user:
        return fail('User not found', 404)

    if not user.is_active:
        return fail('Account is deactivated', 403)

    return ok({'access_token': _access_token_for(user)})


@auth_bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    """Get current authenticated user"""
    user = db.session.get(User, get_jwt_identity())

    if not user:
        return fail('User not found', 404, reason='no_profile')

    return ok({'user': user.to_dict(include_profile=True)})


@auth_bp.route('/me', methods=['PUT'])
@jwt_required()
def update_current_user():
    """Update own profile (name/phone/gender/birth/email/password)."""
    user = db.session.get(User, get_jwt_identity())

    if not user:
        return fail('User not found', 404, reason='no_profile')

    data = request.get_json(silent=True) or {}

    try:
        if 'name' in data:
            user.name = (data.get('name') or '').strip()
        if 'phone' in data:
            phone = (data.get('phone') or '').strip()
            user.phone = phone if phone else None
        if 'gender' in data:
            gender = (data.get('gender') or '').strip()
            user.gender = gender if gender else None
        if 'birth' in data:
            birth = (data.get('birth') or '').strip()
            try:
                user.birth = date.fromisoformat(birth) if birth else None
            except ValueError:
                return fail('Invalid birth date, expected YYYY-MM-DD', 400)
        if 'email' in data:
            email = (data.get('email') or '').strip().lower()
            if email and not _is_valid_email(email):
                return fail('Invalid email address', 400)
            if email and email != user.email and User.query.filter_by(email=email).first():
                return fail('Email already in use', 409)
            user.email = email if email else None
        if data.get('password'):
            if len(data['password']) < 6:
                return fail('Password must be at least 6 characters', 400)
            user.set_password(data['password'])

        db.session.commit()
        return ok({'user': user.to_dict(include_profile=True)})

    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(f'Failed to update profile: {e}', 500)


@auth_bp.route('/me/points', methods=['GET'])
@jwt_required()
def get_own_points():
    """Own balance and upcoming expirations"""
    try:
        summary = summarize(get_jwt_identity())
    except LedgerError as e:
        return fail(e.message, e.status_code, **e.extra)

    return ok(summary.to_dict())
