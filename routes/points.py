"""
Points Management API Routes
Manual point adjustments with expiry, expiry summary, and pre-registration
grants keyed by phone number
"""
from flask import Blueprint, current_app, request
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from services.errors import LedgerError
from services.points import (
    AdjustmentRequest,
    PendingGrantRequest,
    adjustment_history,
    pending_grants_for_phone,
    record_adjustment,
    record_pending_grant,
    summarize,
)
from utils.activity_logger import log_activity
from utils.http import fail, ok
from utils.rbac import current_user, require_admin

points_bp = Blueprint('points', __name__)


def _ledger_error(e: LedgerError):
    return fail(e.message, e.status_code, **e.extra)


@points_bp.route('/points', methods=['GET'])
@require_admin
def get_points_summary():
    """Current balance and upcoming expirations for one user"""
    user_id = (request.args.get('user_id') or '').strip()
    if not user_id:
        return fail('user_id is required', 400)

    try:
        summary = summarize(user_id)
    except LedgerError as e:
        return _ledger_error(e)

    return ok(summary.to_dict())


@points_bp.route('/points', methods=['POST'])
@require_admin
def adjust_points():
    """Add or deduct points manually, optionally with an expiry"""
    try:
        req = AdjustmentRequest.from_json(request.get_json(silent=True))
        balance = record_adjustment(req, actor_id=current_user().id)
    except LedgerError as e:
        return _ledger_error(e)

    log_activity(
        user_id=current_user().id,
        action='POINTS_ADJUSTED',
        entity_type='user',
        entity_id=req.user_id,
        details={
            'delta': req.delta,
            'reason': req.reason,
            'expires_at': req.expires_at.isoformat() if req.expires_at else None,
            'new_balance': balance,
        },
    )

    return ok({'user_id': req.user_id, 'points': balance})


@points_bp.route('/points/history', methods=['GET'])
@require_admin
def get_points_history():
    """Adjustment log for one user, newest first"""
    user_id = (request.args.get('user_id') or '').strip()
    if not user_id:
        return fail('user_id is required', 400)

    page = request.args.get('page', 1, type=int)
    per_page = min(request.args.get('per_page', 20, type=int), 100)

    try:
        pagination = adjustment_history(user_id, page=page, per_page=per_page)
    except LedgerError as e:
        return _ledger_error(e)
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    return ok({
        'rows': [a.to_dict() for a in pagination.items],
        'total': pagination.total,
        'pages': pagination.pages,
        'current_page': page,
    })


@points_bp.route('/points-migrate', methods=['POST'])
@require_admin
def migrate_points_by_phone():
    """Grant points to a phone number that has not registered yet"""
    try:
        req = PendingGrantRequest.from_json(
            request.get_json(silent=True),
            country_code=current_app.config.get('PHONE_COUNTRY_CODE'),
        )
        grant = record_pending_grant(req, actor_id=current_user().id)
    except LedgerError as e:
        return _ledger_error(e)

    log_activity(
        user_id=current_user().id,
        action='POINTS_MIGRATED_BY_PHONE',
        entity_type='phone_points_grant',
        entity_id=grant.id,
        details={'phone': req.phone, 'points': req.delta, 'reason': req.reason},
    )

    return ok({'phone': req.phone, 'points': req.delta})


@points_bp.route('/points-migrate', methods=['GET'])
@require_admin
def list_pending_grants():
    """Pending grants recorded for a phone number"""
    try:
        grants = pending_grants_for_phone(
            request.args.get('phone'),
            country_code=current_app.config.get('PHONE_COUNTRY_CODE'),
        )
    except LedgerError as e:
        return _ledger_error(e)
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    return ok({'rows': [g.to_dict() for g in grants]})
