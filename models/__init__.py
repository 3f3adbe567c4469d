"""
Database models package
"""
from .user import User, ActivityLog
from .product import Brand, Category, Product
from .points import PointAdjustment, PendingPhoneGrant

__all__ = [
    'User',
    'ActivityLog',
    'Brand',
    'Category',
    'Product',
    'PointAdjustment',
    'PendingPhoneGrant',
]
