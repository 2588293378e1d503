import os
import re


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'qbank-fallback-secret-key-change-in-production'

    # MongoDB Configuration
    # Prefer production URI (cloud) over local
    MONGO_URI = os.environ.get('MONGO_PRODUCTION_URI') or os.environ.get('MONGO_URI') or 'mongodb://localhost:27017'
    MONGO_DBNAME = os.environ.get('MONGO_DBNAME') or 'question_bank'

    # Build full MongoDB URI with database name
    if MONGO_URI and MONGO_DBNAME:
        if '?' in MONGO_URI:
            base_part, query_part = MONGO_URI.split('?', 1)
            base_part = base_part.rstrip('/')
            MONGO_URI = f"{base_part}/{MONGO_DBNAME}?{query_part}"
        else:
            MONGO_URI = f"{MONGO_URI.rstrip('/')}/{MONGO_DBNAME}"

    # Uploads (Flask rejects larger request bodies with 413)
    MAX_UPLOAD_SIZE = int(os.environ.get('MAX_UPLOAD_SIZE', 10 * 1024 * 1024))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE

    # Pagination
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

    # CORS Configuration
    CORS_ORIGINS = [origin.strip() for origin in os.environ.get(
        'CORS_ORIGINS',
        'http://localhost:3000'
    ).split(',') if origin.strip()]

    # Allow common private LAN ranges during development
    LAN_REGEX_ORIGINS = [
        re.compile(r"^http://192\.168\.\d{1,3}\.\d{1,3}(:\d+)?$"),
        re.compile(r"^http://10\.\d{1,3}\.\d{1,3}\.\d{1,3}(:\d+)?$"),
        re.compile(r"^http://172\.(1[6-9]|2\d|3[0-1])\.\d{1,3}\.\d{1,3}(:\d+)?$")
    ]

    CORS_ORIGINS = [*CORS_ORIGINS, *LAN_REGEX_ORIGINS]

    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization']
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_EXPOSE_HEADERS = ['Content-Disposition']

    # Set to False to start without a database (parse/template routes still work)
    MONGO_CONNECT = True


class DevelopmentConfig(Config):
    DEBUG = True
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'qbank-dev-secret-key-not-for-production'


class TestingConfig(Config):
    TESTING = True
    MONGO_CONNECT = False
    MAX_UPLOAD_SIZE = 1024 * 1024
    MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE


class ProductionConfig(Config):
    DEBUG = False

    # Validate critical secrets in production
    def __init__(self):
        if not os.environ.get('SECRET_KEY'):
            raise ValueError("SECRET_KEY environment variable is required in production")


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
