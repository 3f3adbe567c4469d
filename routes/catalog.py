"""
Catalog routes - public storefront browsing and search (no login required)
"""
from flask import Blueprint, request
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models.product import Brand, Category, Product, PRODUCT_CONDITIONS
from utils.http import fail, ok

catalog_bp = Blueprint('catalog', __name__)


def _visible_products():
    return Product.query.filter(
        Product.status == 'published',
        Product.is_active.is_(True),
    )


@catalog_bp.route('/products', methods=['GET'])
def list_products():
    """Published products, optionally narrowed to a brand/category slug.

    Query params:
      q          name contains (case-insensitive)
      slug       brand slug or category slug
      condition  new | used
      sort       newest (default) | cheapest | priciest
    """
    query = _visible_products()

    slug = (request.args.get('slug') or '').strip()
    if slug:
        query = query.filter(or_(Product.brand_slug == slug, Product.category_slug == slug))

    q = (request.args.get('q') or '').strip()
    if q:
        query = query.filter(Product.name.ilike(f'%{q}%'))

    condition = (request.args.get('condition') or '').strip().lower()
    if condition in PRODUCT_CONDITIONS:
        query = query.filter(Product.condition == condition)

    sort = (request.args.get('sort') or 'newest').strip().lower()
    if sort == 'cheapest':
        # Unpriced items first, like an ascending sort with nulls first.
        query = query.order_by(Product.price.is_(None).desc(), Product.price.asc(), Product.id.asc())
    elif sort == 'priciest':
        query = query.order_by(Product.price.is_(None).asc(), Product.price.desc(), Product.id.asc())
    else:
        query = query.order_by(Product.created_at.desc(), Product.id.desc())

    try:
        rows = query.all()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    # In-stock first; sorted() is stable so the chosen ordering survives.
    rows = sorted(rows, key=lambda p: p.is_out_of_stock)

    return ok({'rows': [p.to_dict() for p in rows]})


@catalog_bp.route('/products/<int:product_id>', methods=['GET'])
def get_product(product_id):
    """Single published product"""
    product = _visible_products().filter(Product.id == product_id).first()
    if not product:
        return fail('Product not found', 404, reason='not_found')
    return ok({'row': product.to_dict()})


@catalog_bp.route('/brands', methods=['GET'])
def list_brands():
    """Active brands, alphabetical"""
    rows = Brand.query.filter(Brand.is_active.is_(True)).order_by(Brand.name.asc()).all()
    return ok({'rows': [b.to_dict() for b in rows]})


@catalog_bp.route('/categories', methods=['GET'])
def list_categories():
    """Active categories in display order"""
    rows = (
        Category.query.filter(Category.is_active.is_(True))
        .order_by(Category.sort.asc(), Category.name.asc())
        .all()
    )
    return ok({'rows': [c.to_dict() for c in rows]})
