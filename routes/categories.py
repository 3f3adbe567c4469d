"""
Categories routes - admin category management with icon upload
"""
import time
from flask import Blueprint, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from extensions import db
from models.product import Category
from utils.activity_logger import log_activity
from utils.http import fail, form_or_json, ok, parse_bool
from utils.rbac import current_user, require_admin
from utils.storage import (
    ext_from_filename,
    is_allowed_image_filename,
    remove_upload,
    safe_slug,
    save_upload,
)

categories_bp = Blueprint('categories', __name__)


def _parse_sort(value, default=1):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _store_icon(slug):
    """Save an uploaded icon file, if any. Returns (path, error_response)."""
    file = request.files.get('file')
    if not file or not file.filename:
        return None, None
    if not is_allowed_image_filename(file.filename):
        return None, fail('Unsupported image type. Use png/jpg/jpeg/webp.', 400, reason='validation')
    try:
        path = save_upload(file, 'category', f'{slug}-{int(time.time())}.{ext_from_filename(file.filename)}')
    except (OSError, ValueError) as e:
        return None, fail(str(e), 500, reason='upload_failed')
    return path, None


@categories_bp.route('/categories', methods=['GET'])
@require_admin
def get_categories():
    """Get all categories, newest first"""
    try:
        rows = Category.query.order_by(Category.created_at.desc(), Category.id.desc()).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)
    return ok({'rows': [c.to_dict() for c in rows]})


@categories_bp.route('/categories', methods=['POST'])
@require_admin
def create_category():
    """Create new category (form: name, slug, sort, is_active, icon_path or file)"""
    data = form_or_json()

    name = (data.get('name') or '').strip()
    slug = safe_slug(data.get('slug') or '')

    if not name:
        return fail('name is required', 400)
    if not slug:
        return fail('slug is required', 400)

    icon_path = (data.get('icon_path') or '').strip() or None
    uploaded, error = _store_icon(slug)
    if error:
        return error
    if uploaded:
        icon_path = uploaded

    category = Category(
        name=name,
        slug=slug,
        sort=_parse_sort(data.get('sort')),
        is_active=parse_bool(data.get('is_active'), default=True),
        icon_path=icon_path,
    )

    try:
        db.session.add(category)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        remove_upload(uploaded)
        return fail(f'Category slug "{slug}" already exists', 409)
    except SQLAlchemyError as e:
        db.session.rollback()
        remove_upload(uploaded)
        return fail(str(e), 500)

    log_activity(
        user_id=current_user().id,
        action='Added new category',
        entity_type='category',
        entity_id=category.id,
        details={'name': category.name, 'slug': category.slug},
    )

    return ok({'row': category.to_dict()}, 201)


@categories_bp.route('/categories/<int:category_id>', methods=['PATCH'])
@require_admin
def update_category(category_id):
    """Update category from JSON or form fields"""
    data = form_or_json()

    try:
        category = db.session.get(Category, category_id)
        if not category:
            return fail('Category not found', 404, reason='not_found')

        if 'name' in data:
            category.name = (data.get('name') or '').strip()
        if 'slug' in data:
            category.slug = safe_slug(data.get('slug') or '')
        if 'sort' in data:
            category.sort = _parse_sort(data.get('sort'))
        if 'is_active' in data:
            category.is_active = parse_bool(data.get('is_active'))
        if 'icon_path' in data:
            category.icon_path = (data.get('icon_path') or '').strip() or None

        uploaded, error = _store_icon(category.slug)
        if error:
            db.session.rollback()
            return error
        if uploaded:
            category.icon_path = uploaded

        if not category.name or not category.slug:
            db.session.rollback()
            return fail('name and slug cannot be empty', 400)

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail('Category slug already exists', 409)
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    return ok({'row': category.to_dict()})


@categories_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@require_admin
def delete_category(category_id):
    """Delete category"""
    try:
        category = db.session.get(Category, category_id)
        if not category:
            return fail('Category not found', 404, reason='not_found')
        db.session.delete(category)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500)

    log_activity(
        user_id=current_user().id,
        action='Deleted category',
        entity_type='category',
        entity_id=category_id,
    )

    return ok({'deleted': True})
