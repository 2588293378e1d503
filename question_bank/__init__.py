from flask import Flask
from flask_cors import CORS
from pymongo import MongoClient
from config import config
import os
from datetime import datetime

# Initialize extensions
cors = CORS()

# MongoDB client will be initialized in create_app
mongo_client = None
mongo_db = None


class MongoWrapper:
    """Simple wrapper to provide Flask-PyMongo-like interface"""
    @property
    def db(self):
        return mongo_db

    @property
    def cx(self):
        return mongo_client


# Create global mongo object for compatibility
mongo = MongoWrapper()


def _connect_mongo(app):
    """Connect to MongoDB; failures are logged and the app starts without a database."""
    global mongo_client, mongo_db

    mongo_uri = app.config.get('MONGO_URI')
    db_name = app.config.get('MONGO_DBNAME')

    try:
        # Ensure database name is in URI
        if db_name not in mongo_uri:
            if '?' in mongo_uri:
                base_part, query_part = mongo_uri.split('?', 1)
                mongo_uri = f"{base_part.rstrip('/')}/{db_name}?{query_part}"
            else:
                mongo_uri = f"{mongo_uri.rstrip('/')}/{db_name}"

        mongo_client = MongoClient(mongo_uri, serverSelectionTimeoutMS=5000)
        # Test connection
        mongo_client.admin.command('ping')
        mongo_db = mongo_client[db_name]
        app.logger.info(f"[OK] MongoDB connected: {db_name}")
    except Exception as e:
        app.logger.error(f"[ERROR] MongoDB connection failed: {e}")
        mongo_client = None
        mongo_db = None


def create_app(config_name=None):
    """Application factory pattern"""
    global mongo_client, mongo_db
    app = Flask(__name__)

    # Load configuration
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app.config.from_object(config[config_name]())

    if app.config.get('MONGO_CONNECT', True):
        _connect_mongo(app)
    else:
        app.logger.info('[WARN] MongoDB connection disabled by configuration')
        mongo_client = None
        mongo_db = None

    # Register blueprints
    from question_bank.questions import bp as questions_bp
    app.register_blueprint(questions_bp, url_prefix='/api/questions')

    # Apply CORS
    cors.init_app(app, resources={r"/api/*": {
        "origins": app.config['CORS_ORIGINS'],
        "allow_headers": app.config['CORS_ALLOW_HEADERS'],
        "methods": app.config['CORS_METHODS'],
        "expose_headers": app.config['CORS_EXPOSE_HEADERS']
    }})

    # Create collection indexes
    if mongo_db is not None:
        try:
            from question_bank.models.question import Question
            Question.create_indexes()
            app.logger.info('[OK] Question indexes ready')
        except Exception as e:
            app.logger.error(f'[ERROR] Index creation failed: {e}')

    @app.route('/')
    def index():
        return {
            'message': 'Math Question Bank API',
            'status': 'active',
            'version': '1.0.0'
        }

    @app.route('/api/health')
    def health_check():
        db_status = 'connected' if mongo_db is not None else 'disconnected'
        return {
            'status': 'healthy',
            'database': db_status,
            'timestamp': datetime.utcnow().isoformat()
        }

    app.logger.info('[OK] Math Question Bank API ready')
    return app
