"""
Application settings and configuration
"""
import os
from datetime import timedelta
from pathlib import Path
from dotenv import load_dotenv

_is_production = os.getenv('FLASK_ENV', 'development') == 'production'
load_dotenv(override=(not _is_production))

_BASE_DIR = Path(__file__).resolve().parent.parent


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY', 'storefront-secret-key-change-me-in-production')
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'storefront-jwt-secret-key-change-me-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=8)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)

    # CORS Settings
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', '*')

    # Uploaded images (brand logos, category icons, product photos)
    UPLOAD_FOLDER = os.getenv('UPLOAD_FOLDER', str(_BASE_DIR / 'uploads'))
    UPLOAD_BUCKET = os.getenv('UPLOAD_BUCKET', 'Public')
    PUBLIC_BASE_URL = os.getenv('PUBLIC_BASE_URL', '')
    MAX_CONTENT_LENGTH = int(os.getenv('MAX_UPLOAD_MB', 10)) * 1024 * 1024

    # Local numbers starting with "0" are rewritten to this country code.
    PHONE_COUNTRY_CODE = os.getenv('PHONE_COUNTRY_CODE', '62')

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Application Settings
    APP_NAME = 'Storefront API'
    APP_VERSION = '1.0.0'
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SQLALCHEMY_ECHO = False


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    JWT_SECRET_KEY = 'testing-jwt-secret-key-that-is-long-enough-for-hs256'
    LOG_LEVEL = 'WARNING'


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on environment"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
