from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from agrochain.errors import ServiceError
import logging

logger = logging.getLogger(__name__)


def _validation_body(error):
    return {
        'error': 'Validation Error',
        'message': 'Request data validation failed',
        'details': error.messages,
        'status_code': 400
    }


def register_error_handlers(app):
    """Register application error handlers"""

    @app.errorhandler(ServiceError)
    def service_error(error):
        if error.status_code >= 500:
            logger.error(f"Service error: {error}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(ValidationError)
    def validation_error(error):
        return jsonify(_validation_body(error)), 400

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found',
            'status_code': 404
        }), 404

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        return jsonify({
            'error': 'Internal Server Error',
            'message': 'An unexpected error occurred',
            'status_code': 500
        }), 500

    @app.errorhandler(HTTPException)
    def http_exception(error):
        return jsonify({
            'error': error.name,
            'message': error.description,
            'status_code': error.code
        }), error.code


def register_api_error_handlers(api):
    """
    Flask-RESTX routes errors through the Api before the app handlers,
    so the same mapping is registered on every Api as well.
    """

    @api.errorhandler(ServiceError)
    def service_error(error):
        return error.to_dict(), error.status_code

    @api.errorhandler(ValidationError)
    def validation_error(error):
        return _validation_body(error), 400
