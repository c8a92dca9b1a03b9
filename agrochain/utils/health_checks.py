"""
Health Check Utilities
Database, outbox and peer-service checks plus process metrics
"""

import time
import os
import threading
import platform
import psutil
import requests
from datetime import datetime
from flask import current_app
from sqlalchemy import text
from agrochain.database import db
from config import BILLING_SERVICE
import logging

logger = logging.getLogger(__name__)


def _timestamp():
    return datetime.utcnow().isoformat() + 'Z'


def check_database_health():
    """Check database connectivity"""
    try:
        start_time = time.time()
        db.session.execute(text('SELECT 1'))
        db.session.commit()
        response_time = (time.time() - start_time) * 1000

        return {
            'status': 'healthy',
            'message': 'Database connection is healthy',
            'response_time': round(response_time, 2),
            'details': {
                'dialect': db.engine.dialect.name,
            },
        }
    except Exception as e:
        db.session.rollback()
        return {
            'status': 'unhealthy',
            'message': f'Database health check failed: {str(e)}',
            'response_time': 0,
            'details': {
                'error': str(e),
                'database_url': db.engine.url.render_as_string(hide_password=True),
            },
        }


def check_outbox_health():
    """Report parked dead letters; they need a replay but do not block traffic"""
    from agrochain.repositories import OutboxRepository
    try:
        dead_letters = len(OutboxRepository().get_dead_letters())
        return {
            'status': 'healthy' if dead_letters == 0 else 'degraded',
            'message': f'{dead_letters} dead-lettered deliveries',
            'response_time': 0,
            'details': {'dead_letters': dead_letters},
        }
    except Exception as e:
        db.session.rollback()
        return {
            'status': 'unhealthy',
            'message': f'Outbox check failed: {str(e)}',
            'response_time': 0,
        }


def check_external_service_health(service_name, service_url, timeout=5):
    """Check a peer service through its /health endpoint"""
    start_time = time.time()
    try:
        response = requests.get(
            f'{service_url.rstrip("/")}/health',
            timeout=timeout,
            headers={'Accept': 'application/json'}
        )
        response_time = round((time.time() - start_time) * 1000, 2)

        if response.status_code == 200:
            return {
                'status': 'healthy',
                'message': f'{service_name} is healthy',
                'response_time': response_time,
            }
        return {
            'status': 'unhealthy',
            'message': f'{service_name} returned {response.status_code}',
            'response_time': response_time,
        }
    except requests.exceptions.Timeout:
        return {
            'status': 'unhealthy',
            'message': f'{service_name} health check timed out after {timeout}s',
            'response_time': round((time.time() - start_time) * 1000, 2),
        }
    except requests.exceptions.RequestException as e:
        return {
            'status': 'unhealthy',
            'message': f'{service_name} health check failed: {str(e)}',
            'response_time': round((time.time() - start_time) * 1000, 2),
        }


def perform_readiness_check():
    """Perform readiness check for the current service"""
    checks = {}
    check_start_time = time.time()

    checks['database'] = check_database_health()
    checks['outbox'] = check_outbox_health()
    overall_healthy = checks['database']['status'] == 'healthy'

    # The billing service calls back into the harvest service. An unreachable
    # peer is reported, but callbacks are retried and dead-lettered, so it
    # does not make this service unready.
    if current_app.config['SERVICE_NAME'] == BILLING_SERVICE and current_app.config.get('CALLBACK_SINK') == 'http':
        checks['harvest-service'] = check_external_service_health(
            'harvest-service', current_app.config['HARVEST_SERVICE_URL'], timeout=3
        )

    return {
        'status': 'ready' if overall_healthy else 'not ready',
        'timestamp': _timestamp(),
        'total_check_time': round((time.time() - check_start_time) * 1000, 2),
        'checks': checks,
    }


def perform_liveness_check():
    """Perform liveness check (fast, no external dependencies)"""
    try:
        process = psutil.Process()
        memory_info = process.memory_info()
        memory_percent = process.memory_percent()
        memory_healthy = memory_percent < 90.0

        return {
            'status': 'alive' if memory_healthy else 'unhealthy',
            'timestamp': _timestamp(),
            'uptime': round(time.time() - process.create_time(), 2),
            'checks': {
                'memory': {
                    'healthy': memory_healthy,
                    'usage': {
                        'rss': memory_info.rss,
                        'percent': round(memory_percent, 2),
                    },
                },
                'threading': {
                    'active_count': threading.active_count(),
                },
            },
        }
    except psutil.Error as e:
        logger.error('Liveness check failed', extra={'error': str(e)})
        return {
            'status': 'unhealthy',
            'timestamp': _timestamp(),
            'error': str(e),
        }


def get_system_metrics():
    """Get process metrics for monitoring"""
    process = psutil.Process()
    memory_info = process.memory_info()

    return {
        'timestamp': _timestamp(),
        'uptime': round(time.time() - process.create_time(), 2),
        'memory': {
            'rss': memory_info.rss,
            'vms': memory_info.vms,
            'percent': round(process.memory_percent(), 2),
        },
        'cpu': {
            'count': psutil.cpu_count(),
            'times': process.cpu_times()._asdict(),
        },
        'process': {
            'pid': os.getpid(),
            'python_version': platform.python_version(),
            'threads': process.num_threads(),
        },
        'environment': {
            'flask_env': os.environ.get('FLASK_ENV', 'development'),
            'version': os.environ.get('API_VERSION', '1.0.0'),
        },
    }
