from functools import wraps
from flask import jsonify, request


def database_required(f):
    """Decorator for routes that read or write the question collection"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from question_bank import mongo

        if mongo.db is None:
            return jsonify({
                'error': 'Database unavailable. Please try again later.'
            }), 503

        return f(*args, **kwargs)
    return decorated_function


def json_body_required(f):
    """Decorator for routes that expect a JSON object body"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'No data provided'}), 400

        return f(*args, **kwargs)
    return decorated_function
