"""
Database initialization script
Run this after creating the database to create tables and seed initial data
"""
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app, db
from models.user import User
from models.product import Brand, Category


def seed_users():
    """Create the default admin account"""
    print("Creating default users...")

    email = os.getenv('ADMIN_EMAIL', 'admin@storefront.local').strip().lower()
    password = os.getenv('ADMIN_PASSWORD', 'admin123')

    if not User.query.filter_by(email=email).first():
        admin = User(
            email=email,
            name='Admin',
            password=password,
            role='admin',
        )
        db.session.add(admin)
        print(f"  ✓ Admin user {email} created")
    else:
        print(f"  - Admin user {email} already exists")

    db.session.commit()


def seed_categories():
    """Create default categories"""
    print("Creating default categories...")

    categories = [
        ('Bags', 'bags', 1),
        ('Shoes', 'shoes', 2),
        ('Watches', 'watches', 3),
        ('Accessories', 'accessories', 4),
    ]

    for name, slug, sort in categories:
        if not Category.query.filter_by(slug=slug).first():
            db.session.add(Category(name=name, slug=slug, sort=sort))
            print(f"  ✓ Category '{name}' created")
        else:
            print(f"  - Category '{name}' already exists")

    db.session.commit()


def seed_brands():
    """Create default brands"""
    print("Creating default brands...")

    brands = [
        ('Louis Vuitton', 'louis-vuitton'),
        ('Gucci', 'gucci'),
        ('Hermes', 'hermes'),
    ]

    for name, slug in brands:
        if not Brand.query.filter_by(slug=slug).first():
            db.session.add(Brand(name=name, slug=slug))
            print(f"  ✓ Brand '{name}' created")
        else:
            print(f"  - Brand '{name}' already exists")

    db.session.commit()


def init_database():
    """Create tables and seed data"""
    with app.app_context():
        print("Creating tables...")
        db.create_all()
        seed_users()
        seed_categories()
        seed_brands()
        print("Done.")


if __name__ == '__main__':
    init_database()
