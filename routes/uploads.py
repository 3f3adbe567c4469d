"""
Upload routes - generic admin file upload into the public upload folder
"""
from flask import Blueprint, current_app, request
from werkzeug.utils import secure_filename
from utils.http import fail, ok
from utils.rbac import require_admin
from utils.storage import public_url, save_upload

uploads_bp = Blueprint('uploads', __name__)


@uploads_bp.route('/upload', methods=['POST'])
@require_admin
def upload_file():
    """Store a file under <folder>/<filename> and return its path and public URL"""
    file = request.files.get('file')
    if not file or not file.filename:
        return fail('file is required', 400)

    folder = secure_filename(request.form.get('folder') or '')
    if not folder:
        return fail('folder is required', 400)

    try:
        path = save_upload(file, folder, request.form.get('filename'))
    except (OSError, ValueError) as e:
        current_app.logger.error('Upload to %s failed: %s', folder, e)
        return fail(str(e), 500)

    return ok({
        'bucket': current_app.config.get('UPLOAD_BUCKET'),
        'path': path,
        'public_url': public_url(path),
    })
