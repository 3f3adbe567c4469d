"""Upload storage helpers.

Images are written under UPLOAD_FOLDER and served from /uploads/<path>.
The database stores the relative path (e.g. "brand/acme-1700000000.png");
public URLs are built on the way out so PUBLIC_BASE_URL can change freely.
"""

from __future__ import annotations

import os
import re
import time
from typing import Optional
from urllib.parse import quote

from flask import current_app
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

_ALLOWED_IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.webp'}
_URL_RE = re.compile(r'^https?://', re.IGNORECASE)


def safe_slug(value: str = '') -> str:
    s = str(value or '').strip().lower()
    s = re.sub(r'[^a-z0-9]+', '-', s)
    s = re.sub(r'-+', '-', s)
    return s.strip('-')


def ext_from_filename(filename: Optional[str], default: str = 'png') -> str:
    m = re.search(r'\.([a-z0-9]+)$', (filename or '').lower())
    return m.group(1) if m else default


def is_allowed_image_filename(filename: str) -> bool:
    ext = os.path.splitext(filename or '')[1].lower()
    return ext in _ALLOWED_IMAGE_EXTENSIONS


def _clean_path(path: str) -> str:
    clean = re.sub(r'[\r\n\t]+', '', str(path).strip()).lstrip('/')
    bucket = current_app.config.get('UPLOAD_BUCKET') or ''
    if bucket and clean.lower().startswith(f'{bucket.lower()}/'):
        clean = clean[len(bucket) + 1:]
    return clean


def public_url(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    clean = _clean_path(path)
    encoded = '/'.join(quote(seg, safe='') for seg in clean.split('/'))
    base = (current_app.config.get('PUBLIC_BASE_URL') or '').rstrip('/')
    return f'{base}/uploads/{encoded}'


def to_public_url(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    s = str(value).strip()
    if _URL_RE.match(s):
        return s
    return public_url(s)


def _resolve_inside_root(relative: str) -> str:
    target = safe_join(current_app.config['UPLOAD_FOLDER'], relative)
    if target is None:
        raise ValueError(f'Path escapes upload folder: {relative}')
    return target


def save_upload(file, folder: str, filename: Optional[str] = None) -> str:
    """Store a werkzeug FileStorage and return its relative path.

    An existing file with the same name is overwritten.
    """
    folder = secure_filename(folder or '')
    if not folder:
        raise ValueError('folder is required')

    ext = ext_from_filename(file.filename)
    base = secure_filename(filename or file.filename or '')
    if not base:
        base = f'upload-{int(time.time())}.{ext}'
    if '.' not in base:
        base = f'{base}.{ext}'

    relative = f'{folder}/{base}'
    target = _resolve_inside_root(relative)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    file.save(target)
    current_app.logger.info('Stored upload %s', relative)
    return relative


def remove_upload(path: Optional[str]) -> bool:
    """Delete a stored file. Missing files are not an error."""
    if not path or _URL_RE.match(str(path)):
        return False
    try:
        os.remove(_resolve_inside_root(_clean_path(path)))
        return True
    except FileNotFoundError:
        return False
    except (OSError, ValueError) as e:
        current_app.logger.warning('Could not remove upload %s: %s', path, e)
        return False
