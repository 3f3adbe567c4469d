"""
User model for authentication, profiles and the cached points balance
"""
import uuid
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash
from extensions import db


def _new_user_id():
    return str(uuid.uuid4())


class User(db.Model):
    """Storefront account (customer or admin)"""
    __tablename__ = 'users'

    id = db.Column(db.String(36), primary_key=True, default=_new_user_id)
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)
    password_hash = db.Column(db.String(255), nullable=True)

    # Profile
    name = db.Column(db.String(100), nullable=False, default='')
    label = db.Column(db.String(100), nullable=True)  # free-form admin tag, searchable
    phone = db.Column(db.String(20), nullable=True, index=True)
    gender = db.Column(db.String(20), nullable=True)
    birth = db.Column(db.Date, nullable=True)

    # Role: 'customer' or 'admin'
    role = db.Column(db.String(20), nullable=False, default='customer')

    # Cached running balance; incremented by every PointAdjustment.delta
    points = db.Column(db.Integer, nullable=False, default=0)

    # Status
    is_active = db.Column(db.Boolean, default=True)
    last_login = db.Column(db.DateTime, nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    point_adjustments = db.relationship('PointAdjustment', backref='user', lazy='dynamic',
                                        foreign_keys='PointAdjustment.user_id')

    def __init__(self, email=None, name='', password=None, role='customer', **kwargs):
        self.email = email.strip().lower() if email else None
        self.name = name
        self.role = role
        if password:
            self.set_password(password)
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Verify password"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def to_dict(self, include_profile=False):
        """Convert to dictionary"""
        data = {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'label': self.label,
            'points': int(self.points or 0),
            'role': self.role,
        }
        if include_profile:
            data.update({
                'phone': self.phone,
                'gender': self.gender,
                'birth': self.birth.isoformat() if self.birth else None,
                'is_active': self.is_active,
                'last_login': self.last_login.isoformat() if self.last_login else None,
                'created_at': self.created_at.isoformat() if self.created_at else None,
            })
        return data

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'


class ActivityLog(db.Model):
    """Activity log for audit trail"""
    __tablename__ = 'activity_logs'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.String(36), db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    action = db.Column(db.String(100), nullable=False)
    entity_type = db.Column(db.String(50), nullable=True)
    entity_id = db.Column(db.String(64), nullable=True)
    details = db.Column(db.JSON, nullable=True)
    ip_address = db.Column(db.String(45), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)

    # Relationships
    user = db.relationship('User', backref='activity_logs')

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'action': self.action,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'details': self.details,
            'ip_address': self.ip_address,
            'user_agent': self.user_agent,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<ActivityLog {self.action}>'
