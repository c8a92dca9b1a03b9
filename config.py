import os
import json


HARVEST_SERVICE = 'harvest-service'
SUPPLY_SERVICE = 'supply-service'
BILLING_SERVICE = 'billing-service'

SERVICE_NAMES = (HARVEST_SERVICE, SUPPLY_SERVICE, BILLING_SERVICE)


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _load_price_table():
    """
    Product -> unit price mapping.
    PRICE_TABLE_JSON overrides the built-in table, e.g. '{"Arroz Oro": 120}'
    """
    raw = os.environ.get('PRICE_TABLE_JSON')
    if raw:
        return {str(k): float(v) for k, v in json.loads(raw).items()}
    return {
        'Arroz Oro': 120.0,
        'Café Premium': 300.0,
    }


def get_database_uri(service_name):
    """
    Resolve the database URI for one service.
    Every service owns its own database; nothing is shared between them.
    """
    url = os.environ.get('DATABASE_URL')
    if url:
        return url

    host = os.environ.get('DATABASE_HOST')
    if host:
        user = os.environ.get('MYSQL_USER', 'admin')
        password = os.environ.get('MYSQL_PASSWORD', 'admin123')
        port = os.environ.get('DATABASE_PORT', '3306')
        database = service_name.replace('-', '_') + '_db'
        return f"mysql+pymysql://{user}:{password}@{host}:{port}/{database}"

    # Local fallback, relative to the Flask instance folder
    return f"sqlite:///{service_name.replace('-', '_')}.db"


class Config:
    """Base configuration"""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Which of the three services this process runs
    SERVICE_NAME = os.environ.get('SERVICE_NAME', HARVEST_SERVICE)

    # Database - resolved per service at runtime
    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Billing
    PRICE_TABLE = _load_price_table()
    DEFAULT_PRICE = float(os.environ.get('DEFAULT_PRICE', 100.0))

    # Supply
    ALLOW_NEGATIVE_STOCK = _env_bool('ALLOW_NEGATIVE_STOCK', False)

    # Harvest: 'ignore' or 'conflict' when an invoiced harvest is invoiced again
    DUPLICATE_INVOICE_POLICY = os.environ.get('DUPLICATE_INVOICE_POLICY', 'ignore')

    # Event delivery
    EVENT_SINK = os.environ.get('EVENT_SINK', 'dapr')
    DAPR_PUBSUB_NAME = os.environ.get('DAPR_PUBSUB_NAME', 'agrochain-pubsub')
    CALLBACK_SINK = os.environ.get('CALLBACK_SINK', 'http')
    HARVEST_SERVICE_URL = os.environ.get('HARVEST_SERVICE_URL', 'http://localhost:5001')

    # Retry / backoff for event and callback delivery
    EVENT_MAX_ATTEMPTS = int(os.environ.get('EVENT_MAX_ATTEMPTS', 5))
    EVENT_BACKOFF_INITIAL = float(os.environ.get('EVENT_BACKOFF_INITIAL', 0.5))
    EVENT_BACKOFF_MULTIPLIER = float(os.environ.get('EVENT_BACKOFF_MULTIPLIER', 2.0))
    EVENT_BACKOFF_MAX = float(os.environ.get('EVENT_BACKOFF_MAX', 8.0))
    EVENT_DELIVERY_TIMEOUT = float(os.environ.get('EVENT_DELIVERY_TIMEOUT', 5.0))

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    LOG_LEVEL = 'DEBUG'
    EVENT_SINK = os.environ.get('EVENT_SINK', 'log')


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    # Use in-memory SQLite for testing
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    EVENT_SINK = 'memory'
    CALLBACK_SINK = 'memory'
    EVENT_MAX_ATTEMPTS = 3
    EVENT_BACKOFF_INITIAL = 0.0
    EVENT_BACKOFF_MAX = 0.0


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}
