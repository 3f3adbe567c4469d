"""
Points ledger models

Both tables are append-only logs: rows are inserted once by an admin action
and never updated or deleted.
"""
from datetime import datetime, timezone
from extensions import db


def utcnow():
    """Naive UTC timestamp, the storage convention for ledger columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value):
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc).isoformat()


class PointAdjustment(db.Model):
    """Signed point change applied to a registered user's balance"""
    __tablename__ = 'user_points'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    delta = db.Column(db.Integer, nullable=False)  # positive = grant, negative = deduction
    reason = db.Column(db.Text, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True, index=True)

    # Admin who recorded the adjustment
    created_by = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'delta': self.delta,
            'reason': self.reason,
            'expires_at': isoformat_utc(self.expires_at),
            'created_by': self.created_by,
            'created_at': isoformat_utc(self.created_at),
        }

    def __repr__(self):
        return f'<PointAdjustment {self.user_id}: {self.delta:+d}>'


class PendingPhoneGrant(db.Model):
    """Point grant recorded against a phone number that has no account yet"""
    __tablename__ = 'phone_points_grants'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    phone = db.Column(db.String(32), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    delta = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)

    created_by = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'phone': self.phone,
            'name': self.name,
            'email': self.email,
            'points': self.delta,
            'reason': self.reason,
            'expires_at': isoformat_utc(self.expires_at),
            'created_at': isoformat_utc(self.created_at),
        }

    def __repr__(self):
        return f'<PendingPhoneGrant {self.phone}: +{self.delta}>'
