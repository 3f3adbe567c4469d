"""
Catalog models: brands, categories and products
"""
from datetime import datetime
from extensions import db
from utils.storage import to_public_url

PRODUCT_STATUSES = ('published', 'draft')
PRODUCT_CONDITIONS = ('new', 'used')


class Brand(db.Model):
    """Product brand with an optional logo"""
    __tablename__ = 'brands'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    logo_url = db.Column(db.String(255), nullable=True)  # relative storage path, e.g. brand/acme-1700000000.png
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'logo_url': self.logo_url,
            'logo_public_url': to_public_url(self.logo_url),
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Brand {self.slug}>'


class Category(db.Model):
    """Category model for product categories"""
    __tablename__ = 'categories'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(120), unique=True, nullable=False, index=True)
    icon_path = db.Column(db.String(255), nullable=True)
    sort = db.Column(db.Integer, nullable=False, default=1)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.now)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'icon_path': self.icon_path,
            'icon_public_url': to_public_url(self.icon_path),
            'sort': self.sort,
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Category {self.slug}>'


class Product(db.Model):
    """Product listed in the storefront"""
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)

    # Brand and category are referenced by slug so storefront URLs stay stable
    brand_slug = db.Column(db.String(120), nullable=False, index=True)
    category_slug = db.Column(db.String(120), nullable=False, index=True)

    # Pricing; null means "price on request"
    price = db.Column(db.Numeric(12, 2), nullable=True)

    # Inventory
    stock = db.Column(db.Integer, nullable=False, default=0)
    condition = db.Column(db.String(10), nullable=False, default='new')

    # Media
    image_url = db.Column(db.String(255), nullable=True)
    image_urls = db.Column(db.JSON, nullable=True)

    # Status
    status = db.Column(db.String(20), nullable=False, default='published')
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.now)
    updated_at = db.Column(db.DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def is_out_of_stock(self):
        """Check if product is out of stock"""
        return (self.stock or 0) <= 0

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'brand_slug': self.brand_slug,
            'category_slug': self.category_slug,
            'price': float(self.price) if self.price is not None else None,
            'stock': int(self.stock or 0),
            'condition': self.condition,
            'image_url': self.image_url,
            'image_public_url': to_public_url(self.image_url),
            'image_urls': [to_public_url(u) for u in (self.image_urls or [])],
            'status': self.status,
            'is_active': self.is_active,
            'is_out_of_stock': self.is_out_of_stock,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }

    def __repr__(self):
        return f'<Product {self.name}>'
