"""
Brand routes - admin brand management with logo upload
"""
import time
from flask import Blueprint, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from extensions import db
from models.product import Brand
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

brands_bp = Blueprint('brands', __name__)


@brands_bp.route('/brands', methods=['GET'])
@require_admin
def get_brands():
    """List all brands, newest first"""
    try:
        rows = Brand.query.order_by(Brand.created_at.desc(), Brand.id.desc()).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500, reason='select_failed')
    return ok({'rows': [b.to_dict() for b in rows]})


@brands_bp.route('/brands', methods=['POST'])
@require_admin
def create_brand():
    """Create brand (multipart: name, slug?, is_active?, file?)"""
    if not (request.content_type or '').startswith('multipart/form-data'):
        return fail('Use multipart/form-data', 415, reason='bad_content_type')

    name = (request.form.get('name') or '').strip()
    if not name:
        return fail('name is required', 400, reason='validation')

    slug = safe_slug(request.form.get('slug') or name)
    if not slug:
        return fail('slug is required', 400, reason='validation')
    is_active = parse_bool(request.form.get('is_active'), default=True)

    logo_url = None
    file = request.files.get('file')
    if file and file.filename:
        if not is_allowed_image_filename(file.filename):
            return fail('Unsupported image type. Use png/jpg/jpeg/webp.', 400, reason='validation')
        try:
            logo_url = save_upload(file, 'brand', f'{slug}-{int(time.time())}.{ext_from_filename(file.filename)}')
        except (OSError, ValueError) as e:
            return fail(str(e), 500, reason='upload_failed')

    brand = Brand(name=name, slug=slug, logo_url=logo_url, is_active=is_active)
    try:
        db.session.add(brand)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        remove_upload(logo_url)
        return fail(f'Brand slug "{slug}" already exists', 409, reason='duplicate')
    except SQLAlchemyError as e:
        db.session.rollback()
        remove_upload(logo_url)
        return fail(str(e), 500, reason='insert_failed')

    log_activity(
        user_id=current_user().id,
        action='Added new brand',
        entity_type='brand',
        entity_id=brand.id,
        details={'name': brand.name, 'slug': brand.slug},
    )

    return ok({'row': brand.to_dict()}, 201)


@brands_bp.route('/brands/<int:brand_id>', methods=['PATCH'])
@require_admin
def update_brand(brand_id):
    """Toggle brand visibility (JSON: is_active, optional name/slug)"""
    data = request.get_json(silent=True)
    if data is None:
        return fail('body json invalid', 400, reason='validation')

    try:
        brand = db.session.get(Brand, brand_id)
        if not brand:
            return fail('Brand not found', 404, reason='not_found')

        if 'is_active' in data:
            brand.is_active = parse_bool(data.get('is_active'))
        if (data.get('name') or '').strip():
            brand.name = data['name'].strip()
        if 'slug' in data and safe_slug(data.get('slug')):
            brand.slug = safe_slug(data['slug'])

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return fail('Brand slug already exists', 409, reason='duplicate')
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500, reason='update_failed')

    return ok({'row': brand.to_dict()})


@brands_bp.route('/brands/<int:brand_id>', methods=['DELETE'])
@require_admin
def delete_brand(brand_id):
    """Delete brand and its stored logo"""
    try:
        brand = db.session.get(Brand, brand_id)
        if not brand:
            return fail('Brand not found', 404, reason='not_found')

        logo_url = brand.logo_url
        db.session.delete(brand)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        return fail(str(e), 500, reason='delete_failed')

    remove_upload(logo_url)

    log_activity(
        user_id=current_user().id,
        action='Deleted brand',
        entity_type='brand',
        entity_id=brand_id,
    )

    return ok({'id': brand_id})
