"""Points ledger operations.

Admin adjustments are appended to `user_points` and mirrored into the cached
`users.points` balance. Grants for people who have not registered yet are
appended to `phone_points_grants`, keyed by normalized phone number; turning
those into real adjustments once the phone registers is a manual step.

Request bodies are parsed into the dataclasses below first, so every
validation error is raised before anything is written.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models.points import PendingPhoneGrant, PointAdjustment, isoformat_utc, utcnow
from models.user import User
from services.errors import (
    InvalidDelta,
    InvalidExpiry,
    InvalidPhone,
    InvalidPoints,
    LedgerError,
    NotFound,
    PersistenceFailure,
)
from utils.dates import INVALID, parse_flexible_datetime
from utils.phone import normalize_phone


# Amounts must fit the 32-bit integer columns.
MAX_POINTS = 2 ** 31 - 1


def _coerce_int(value: Any) -> Optional[int]:
    """Integer value of a JSON number or numeric string, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        s = value.strip()
        if not s:
            return None
        try:
            return int(s)
        except ValueError:
            try:
                value = float(s)
            except ValueError:
                return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
        return int(value)
    return None


def _bounded_int(value: Any) -> Optional[int]:
    n = _coerce_int(value)
    if n is None or abs(n) > MAX_POINTS:
        return None
    return n


def _json_object(data: Any) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise LedgerError('JSON object body required')
    return data


def _optional_text(value: Any) -> Optional[str]:
    s = str(value).strip() if value is not None else ''
    return s or None


def _parse_expiry(raw: Any) -> Optional[datetime]:
    parsed = parse_flexible_datetime(raw)
    if parsed is INVALID:
        raise InvalidExpiry('expires_at is not a valid date', got=str(raw))
    return parsed


def _to_storage(value: Optional[datetime]) -> Optional[datetime]:
    # Ledger columns hold naive UTC.
    if value is None:
        return None
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass
class AdjustmentRequest:
    user_id: str
    delta: int
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Optional[dict]) -> 'AdjustmentRequest':
        data = _json_object(data)
        user_id = str(data.get('user_id') or '').strip()
        if not user_id:
            raise LedgerError('user_id is required')

        delta = _bounded_int(data.get('delta'))
        if delta is None or delta == 0:
            raise InvalidDelta(f'delta must be a non-zero integer between -{MAX_POINTS} and {MAX_POINTS}')

        return cls(
            user_id=user_id,
            delta=delta,
            reason=_optional_text(data.get('reason')),
            expires_at=_parse_expiry(data.get('expires_at')),
        )


@dataclass
class PendingGrantRequest:
    phone: str
    delta: int
    name: Optional[str] = None
    email: Optional[str] = None
    reason: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: Optional[dict], country_code: Optional[str] = None) -> 'PendingGrantRequest':
        data = _json_object(data)
        phone = normalize_phone(data.get('phone'), country_code)
        if not phone:
            raise InvalidPhone('phone is required')

        points = _bounded_int(data.get('points'))
        if points is None or points <= 0:
            raise InvalidPoints(f'points must be an integer between 1 and {MAX_POINTS}')

        email = _optional_text(data.get('email'))
        return cls(
            phone=phone,
            delta=points,
            name=_optional_text(data.get('name')),
            email=email.lower() if email else None,
            reason=_optional_text(data.get('reason')),
            expires_at=_parse_expiry(data.get('expires_at')),
        )


@dataclass
class ExpiringBucket:
    expires_at: datetime
    points: int

    def to_dict(self):
        return {'expires_at': isoformat_utc(self.expires_at), 'points': self.points}


@dataclass
class PointsSummary:
    user: User
    current_balance: int
    expiring_by_date: list[ExpiringBucket] = field(default_factory=list)

    @property
    def next_expiring(self) -> Optional[ExpiringBucket]:
        return self.expiring_by_date[0] if self.expiring_by_date else None

    def to_dict(self):
        nxt = self.next_expiring
        return {
            'user': self.user.to_dict(),
            'current_balance': self.current_balance,
            'expiring_by_date': [b.to_dict() for b in self.expiring_by_date],
            'next_expiring': nxt.to_dict() if nxt else None,
        }


def _get_user(user_id: str) -> User:
    try:
        user = db.session.get(User, user_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceFailure(str(e)) from e
    if user is None:
        raise NotFound('User not found')
    return user


def record_adjustment(req: AdjustmentRequest, actor_id: Optional[str] = None) -> int:
    """Append an adjustment and apply it to the cached balance.

    Returns the new cached balance. The balance write is an atomic
    increment. If it fails the appended entry is kept and PersistenceFailure
    is raised with partial=True.
    """
    _get_user(req.user_id)

    entry = PointAdjustment(
        user_id=req.user_id,
        delta=req.delta,
        reason=req.reason,
        expires_at=_to_storage(req.expires_at),
        created_by=actor_id,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error('Failed to append points adjustment for %s: %s', req.user_id, e)
        raise PersistenceFailure(str(e)) from e

    entry_id = entry.id
    current_app.logger.info(
        'Points adjustment #%s recorded: user=%s delta=%+d expires_at=%s',
        entry_id, req.user_id, req.delta, isoformat_utc(entry.expires_at),
    )

    try:
        db.session.execute(
            update(User)
            .where(User.id == req.user_id)
            .values(points=func.coalesce(User.points, 0) + req.delta)
            .execution_options(synchronize_session=False)
        )
        db.session.commit()
        balance = db.session.execute(
            select(User.points).where(User.id == req.user_id)
        ).scalar_one()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error(
            'Points adjustment #%s written but balance update failed for %s: %s',
            entry_id, req.user_id, e,
        )
        raise PersistenceFailure(
            f'Adjustment recorded but balance update failed: {e}',
            partial=True,
            adjustment_id=entry_id,
        ) from e

    return int(balance or 0)


def summarize(user_id: str, now: Optional[datetime] = None) -> PointsSummary:
    """Cached balance plus the not-yet-expired grants bucketed by expiry."""
    user = _get_user(user_id)

    if now is None:
        cutoff = utcnow()
    else:
        cutoff = _to_storage(now) if now.tzinfo is not None else now

    stmt = (
        select(PointAdjustment.expires_at, func.sum(PointAdjustment.delta))
        .where(
            PointAdjustment.user_id == user_id,
            PointAdjustment.delta > 0,
            PointAdjustment.expires_at.isnot(None),
            PointAdjustment.expires_at > cutoff,
        )
        .group_by(PointAdjustment.expires_at)
        .order_by(PointAdjustment.expires_at.asc())
    )
    try:
        rows = db.session.execute(stmt).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise PersistenceFailure(str(e)) from e

    return PointsSummary(
        user=user,
        current_balance=int(user.points or 0),
        expiring_by_date=[ExpiringBucket(expires_at=exp, points=int(total)) for exp, total in rows],
    )


def record_pending_grant(req: PendingGrantRequest, actor_id: Optional[str] = None) -> PendingPhoneGrant:
    """Append a grant for a phone number that has no account yet.

    Repeated grants for the same phone are separate rows.
    """
    grant = PendingPhoneGrant(
        phone=req.phone,
        name=req.name,
        email=req.email,
        delta=req.delta,
        reason=req.reason,
        expires_at=_to_storage(req.expires_at),
        created_by=actor_id,
    )
    try:
        db.session.add(grant)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        current_app.logger.error('Failed to record pending grant for %s: %s', req.phone, e)
        raise PersistenceFailure(str(e)) from e

    current_app.logger.info('Pending phone grant #%s recorded: phone=%s points=%d', grant.id, req.phone, req.delta)
    return grant


def adjustment_history(user_id: str, page: int = 1, per_page: int = 20):
    """Paginated adjustments for a user, newest first."""
    _get_user(user_id)
    stmt = (
        select(PointAdjustment)
        .where(PointAdjustment.user_id == user_id)
        .order_by(PointAdjustment.created_at.desc(), PointAdjustment.id.desc())
    )
    return db.paginate(stmt, page=page, per_page=per_page, error_out=False)


def pending_grants_for_phone(phone_raw, country_code: Optional[str] = None) -> list[PendingPhoneGrant]:
    phone = normalize_phone(phone_raw, country_code)
    if not phone:
        raise InvalidPhone('phone is required')
    stmt = (
        select(PendingPhoneGrant)
        .where(PendingPhoneGrant.phone == phone)
        .order_by(PendingPhoneGrant.created_at.desc(), PendingPhoneGrant.id.desc())
    )
    return list(db.session.execute(stmt).scalars())
