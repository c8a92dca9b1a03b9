"""
Health check endpoints
These endpoints are used by monitoring systems, load balancers, and Kubernetes
"""

from flask import Blueprint, jsonify, current_app
from datetime import datetime
import os
import logging
from agrochain.utils.health_checks import (
    perform_readiness_check,
    perform_liveness_check,
    get_system_metrics
)

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__)


@health_bp.route('/health', methods=['GET'])
def health():
    """Main health check endpoint"""
    return jsonify({
        'status': 'healthy',
        'service': current_app.config['SERVICE_NAME'],
        'timestamp': datetime.utcnow().isoformat() + 'Z',
        'version': os.environ.get('API_VERSION', '1.0.0'),
        'environment': os.environ.get('FLASK_ENV', 'development'),
    }), 200


@health_bp.route('/health/ready', methods=['GET'])
def readiness():
    """Readiness probe - checks if service is ready to handle traffic"""
    readiness_result = perform_readiness_check()

    ready = readiness_result['status'] == 'ready'
    log = logger.info if ready else logger.warning
    log(f"Readiness: {readiness_result['status']}", extra={
        'checks': {name: check['status'] for name, check in readiness_result['checks'].items()},
        'total_check_time': readiness_result['total_check_time'],
    })

    status_code = 200 if ready else 503
    return jsonify({
        'service': current_app.config['SERVICE_NAME'],
        **readiness_result
    }), status_code


@health_bp.route('/health/live', methods=['GET'])
def liveness():
    """Liveness probe - checks if service is alive and responsive"""
    liveness_result = perform_liveness_check()

    if liveness_result['status'] != 'alive':
        logger.warning('Liveness check failed', extra={'status': liveness_result['status']})

    status_code = 200 if liveness_result['status'] == 'alive' else 503
    return jsonify({
        'service': current_app.config['SERVICE_NAME'],
        **liveness_result
    }), status_code


@health_bp.route('/metrics', methods=['GET'])
def metrics():
    """Process metrics endpoint for monitoring"""
    return jsonify({
        'service': current_app.config['SERVICE_NAME'],
        **get_system_metrics()
    }), 200
