"""
Storefront - Flask Backend Application
Main entry point
"""
import logging
import os
from pathlib import Path

from flask import Flask, jsonify, request, send_from_directory
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

# Load environment variables
# Always load `.env` next to this file (if it exists) regardless of the
# current working directory.
#
# IMPORTANT for production: do NOT override real environment variables
# injected by the host.
_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
_dotenv_path = Path(__file__).resolve().parent / '.env'
if _dotenv_path.exists():
    load_dotenv(dotenv_path=_dotenv_path, override=(not _is_production))

# Import extensions and routes
from extensions import init_extensions, db
from config.database import SQLALCHEMY_DATABASE_URI, SQLALCHEMY_TRACK_MODIFICATIONS, SQLALCHEMY_ECHO
from config.settings import get_config
from routes import register_blueprints


def _env_flag(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() in {'1', 'true', 'yes', 'on'}


def _configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    app.logger.setLevel(level)


def create_app(config_class=None):
    """Application factory pattern"""
    app = Flask(__name__)

    # Disable strict slashes to prevent 308 redirects
    app.url_map.strict_slashes = False

    # Database defaults first; a config class may override them (tests do).
    app.config['SQLALCHEMY_DATABASE_URI'] = SQLALCHEMY_DATABASE_URI
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = SQLALCHEMY_TRACK_MODIFICATIONS
    app.config['SQLALCHEMY_ECHO'] = SQLALCHEMY_ECHO

    # Load configuration
    if config_class is None:
        config_class = get_config()

    app.config.from_object(config_class)
    _configure_logging(app)

    # Initialize extensions
    init_extensions(app)

    # Import models so metadata knows every table before create_all/migrate.
    import models  # noqa: F401

    register_blueprints(app)

    # Optional table creation for local SQLite / first boot.
    # Production schemas are managed with `flask db upgrade`.
    if _env_flag('AUTO_CREATE_TABLES'):
        try:
            with app.app_context():
                db.create_all()
        except SQLAlchemyError as e:
            app.logger.error('Automatic table creation failed: %s', e)

    # Uploaded images (brand logos, category icons, product photos)
    @app.route('/uploads/<path:path>', methods=['GET'])
    def uploaded_file(path: str):
        return send_from_directory(app.config['UPLOAD_FOLDER'], path)

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({
            'ok': True,
            'message': f"{app.config['APP_NAME']} is running",
            'version': app.config['APP_VERSION']
        }), 200

    # Root endpoint (API info)
    @app.route('/api', methods=['GET'])
    def api_index():
        return jsonify({
            'name': app.config['APP_NAME'],
            'version': app.config['APP_VERSION'],
            'description': 'Storefront catalog, back-office and points ledger API',
            'endpoints': {
                'auth': '/api/auth',
                'catalog': '/api/catalog',
                'admin_users': '/api/admin/users',
                'admin_points': '/api/admin/points',
                'admin_points_migrate': '/api/admin/points-migrate',
                'admin_brands': '/api/admin/brands',
                'admin_categories': '/api/admin/categories',
                'admin_products': '/api/admin/products',
                'admin_upload': '/api/admin/upload',
            }
        }), 200

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'ok': False, 'error': 'Resource not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        allowed = getattr(error, 'valid_methods', None)
        allowed_str = f" Allowed: {', '.join(sorted(set(allowed)))}" if allowed else ''

        # Include method/path so client logs immediately reveal
        # what endpoint was actually called.
        msg = f"Method not allowed ({request.method} {request.path}).{allowed_str}".strip()
        return jsonify({'ok': False, 'error': msg}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        return jsonify({'ok': False, 'error': 'Uploaded file is too large'}), 413

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error('Unhandled error on %s %s: %s', request.method, request.path, error)
        return jsonify({
            'ok': False,
            'error': 'Internal server error'
        }), 500

    return app


# Create application instance
app = create_app()


if __name__ == '__main__':
    # Development server
    port = int(os.getenv('PORT', 5000))
    debug = os.getenv('DEBUG', 'False').lower() == 'true'

    print(f"""
    ╔══════════════════════════════════════════════════════════╗
    ║              Storefront - Backend Server                 ║
    ╠══════════════════════════════════════════════════════════╣
    ║  Local: http://localhost:{port:<32}║
    ║  Debug mode: {debug!s:<44}║
    ║                                                          ║
    ║  Endpoints:                                              ║
    ║  • POST /api/auth/login            - Login               ║
    ║  • GET  /api/catalog/products      - Browse products     ║
    ║  • GET  /api/admin/points          - Points summary      ║
    ║  • POST /api/admin/points          - Adjust points       ║
    ║  • POST /api/admin/points-migrate  - Grant by phone      ║
    ╚══════════════════════════════════════════════════════════╝
    """)

    app.run(host='0.0.0.0', port=port, debug=debug, use_reloader=False)
