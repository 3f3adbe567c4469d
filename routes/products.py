"""
Products routes - admin product management
"""
import time
from decimal import Decimal, InvalidOperation
from flask import Blueprint, request
from sqlalchemy.exc import SQLAlchemyError
from extensions import db
from models.product import Product, PRODUCT_CONDITIONS
from utils.activity_logger import log_activity
from utils.http import fail, ok, parse_bool
from utils.rbac import current_user, require_admin
from utils.storage import (
    ext_from_filename,
    is_allowed_image_filename,
    remove_upload,
    safe_slug,
    save_upload,
)

products_bp = Blueprint('products', __name__)


def _parse_price(raw):
    """Decimal price, None for blank. Raises ValueError on garbage."""
    s = str(raw if raw is not None else '').strip()
    if not s:
        return None
    try:
        price = Decimal(s)
    except InvalidOperation:
        raise ValueError('Invalid price')
    if not price.is_finite() or price < 0:
        raise ValueError('Invalid price')
    return price


def _parse_stock(raw, default=0):
    try:
        return max(int(str(raw).strip()), 0)
    except (TypeError, ValueError):
        return default


def _normalize_status(raw):
    return 'draft' if str(raw or '').strip().lower() == 'draft' else 'published'


def _normalize_condition(raw):
    value = str(raw or '').strip().lower()
    return value if value in PRODUCT_CONDITIONS else 'new'


def _store_image(name):
    """Save an uploaded product image, if any. Returns (path, error_response)."""
    file = request.files.get('file')
    if not file or not file.filename:
        return None, None
    if not is_allowed_image_filename(file.filename):
        return None, fail('Unsupported image type. Use png/jpg/jpeg/webp.', 400)
    base = safe_slug(name) or 'product'
    try:
        path = save_upload(file, 'products', f'{base}-{int(time.time())}.{ext_from_filename(file.filename)}')
    except (OSError, ValueError) as e:
        return None, fail(str(e), 500, reason='upload_failed')
    return path, None


@products_bp.route('/products', methods=['GET'])
@require_admin
def get_products():
    """Get all products, drafts and inactive included, newest first"""
    try:
        rows = Product.query.order_by(Product.created_at.desc(), Product.id.desc()).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)
    return ok({'rows': [p.to_dict() for p in rows]})


@products_bp.route('/products', methods=['POST'])
@require_admin
def create_product():
    """Create new product from form fields"""
    form = request.form

    name = (form.get('name') or '').strip()
    brand_slug = (form.get('brand_slug') or '').strip()
    category_slug = (form.get('category_slug') or '').strip()

    if not name:
        return fail('name is required', 400)
    if not brand_slug:
        return fail('brand_slug is required', 400)
    if not category_slug:
        return fail('category_slug is required', 400)

    try:
        price = _parse_price(form.get('price'))
    except ValueError as e:
        return fail(str(e), 400)

    image_url = (form.get('image_url') or '').strip() or None
    uploaded, error = _store_image(name)
    if error:
        return error
    if uploaded:
        image_url = uploaded

    product = Product(
        name=name,
        brand_slug=brand_slug,
        category_slug=category_slug,
        price=price,
        description=(form.get('description') or '').strip(),
        status=_normalize_status(form.get('status') or 'published'),
        is_active=parse_bool(form.get('is_active'), default=True),
        stock=_parse_stock(form.get('stock')),
        condition=_normalize_condition(form.get('condition')),
        image_url=image_url,
        image_urls=[image_url] if image_url else [],
    )

    try:
        db.session.add(product)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        remove_upload(uploaded)
        return fail(str(e), 500)

    log_activity(
        user_id=current_user().id,
        action='Added new product',
        entity_type='product',
        entity_id=product.id,
        details={'product_id': product.id, 'name': product.name},
    )

    return ok({'row': product.to_dict()}, 201)


def _patch_from_json(data):
    patch = {}
    if 'is_active' in data:
        patch['is_active'] = parse_bool(data.get('is_active'))
    if 'stock' in data:
        patch['stock'] = _parse_stock(data.get('stock'))
    if 'status' in data:
        patch['status'] = _normalize_status(data.get('status'))
    return patch


def _patch_from_form(form):
    """Edit-form fields; blank inputs leave the stored value alone."""
    patch = {}
    for field in ('name', 'brand_slug', 'category_slug'):
        value = (form.get(field) or '').strip()
        if value:
            patch[field] = value

    if 'description' in form:
        patch['description'] = (form.get('description') or '').strip()
    if (form.get('status') or '').strip():
        patch['status'] = _normalize_status(form.get('status'))
    if (form.get('condition') or '').strip():
        patch['condition'] = _normalize_condition(form.get('condition'))
    if (form.get('price') or '').strip():
        patch['price'] = _parse_price(form.get('price'))
    if (form.get('stock') or '').strip():
        patch['stock'] = _parse_stock(form.get('stock'))
    if form.get('is_active') is not None:
        patch['is_active'] = parse_bool(form.get('is_active'))

    image_url = (form.get('image_url') or '').strip()
    if image_url:
        patch['image_url'] = image_url
    return patch


@products_bp.route('/products/<int:product_id>', methods=['PATCH'])
@require_admin
def update_product(product_id):
    """Update product: JSON for quick toggles, form for the edit screen"""
    try:
        if request.is_json:
            patch = _patch_from_json(request.get_json(silent=True) or {})
        else:
            patch = _patch_from_form(request.form)
    except ValueError as e:
        return fail(str(e), 400)

    product = db.session.get(Product, product_id)
    if not product:
        return fail('Product not found', 404, reason='not_found')

    uploaded, error = _store_image(patch.get('name') or product.name)
    if error:
        return error
    if uploaded:
        patch['image_url'] = uploaded

    if not patch:
        return fail('No fields to update', 400)

    previous_image = product.image_url
    for field, value in patch.items():
        setattr(product, field, value)
    if 'image_url' in patch:
        urls = [u for u in (product.image_urls or []) if u != previous_image]
        product.image_urls = [patch['image_url']] + urls

    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        remove_upload(uploaded)
        return fail(str(e), 500)

    log_activity(
        user_id=current_user().id,
        action='Updated product',
        entity_type='product',
        entity_id=product.id,
        details={'fields': sorted(patch.keys())},
    )

    return ok({'row': product.to_dict()})


@products_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_admin
def delete_product(product_id):
    """Delete product"""
    try:
        product = db.session.get(Product, product_id)
        if not product:
            return fail('Product not found', 404, reason='not_found')
        db.session.delete(product)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    log_activity(
        user_id=current_user().id,
        action='Deleted product',
        entity_type='product',
        entity_id=product_id,
    )

    return ok({'deleted': True})
