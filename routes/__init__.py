"""
API Routes package
"""
from .auth import auth_bp
from .users import users_bp
from .points import points_bp
from .brands import brands_bp
from .categories import categories_bp
from .products import products_bp
from .uploads import uploads_bp
from .catalog import catalog_bp

__all__ = [
    'auth_bp',
    'users_bp',
    'points_bp',
    'brands_bp',
    'categories_bp',
    'products_bp',
    'uploads_bp',
    'catalog_bp',
]


def register_blueprints(app):
    """Register all API blueprints"""
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(catalog_bp, url_prefix='/api/catalog')

    # Back-office; every route checks the admin role itself.
    app.register_blueprint(users_bp, url_prefix='/api/admin')
    app.register_blueprint(points_bp, url_prefix='/api/admin')
    app.register_blueprint(brands_bp, url_prefix='/api/admin')
    app.register_blueprint(categories_bp, url_prefix='/api/admin')
    app.register_blueprint(products_bp, url_prefix='/api/admin')
    app.register_blueprint(uploads_bp, url_prefix='/api/admin')

    return app
