import os
import logging
from flask import Flask
from flask_cors import CORS

from config import BILLING_SERVICE, HARVEST_SERVICE, SERVICE_NAMES, SUPPLY_SERVICE

logger = logging.getLogger(__name__)


def _register_service_api(app):
    """Register the API blueprint of the role this process runs"""
    service_name = app.config['SERVICE_NAME']

    if service_name == HARVEST_SERVICE:
        from agrochain.api.controllers import create_harvests_blueprint
        app.register_blueprint(create_harvests_blueprint(), url_prefix='/api')
    elif service_name == SUPPLY_SERVICE:
        from agrochain.api.controllers import create_supplies_blueprint
        app.register_blueprint(create_supplies_blueprint(), url_prefix='/api')
    elif service_name == BILLING_SERVICE:
        from agrochain.api.controllers import create_invoices_blueprint, events_bp
        app.register_blueprint(create_invoices_blueprint(), url_prefix='/api')
        app.register_blueprint(events_bp)
        app.logger.info("Dapr events blueprint registered successfully")

    app.logger.info(f"{service_name} API registered successfully")


def create_app(config_name='default', service_name=None, config_overrides=None):
    """
    Application factory pattern

    Args:
        config_name: Key of the config mapping ('development', 'testing', ...)
        service_name: harvest-service, supply-service or billing-service;
            defaults to the SERVICE_NAME setting
        config_overrides: Extra settings applied last (used by tests)
    """
    app = Flask(__name__)

    # Load environment variables
    from dotenv import load_dotenv
    load_dotenv()

    # Load configuration
    from config import config, get_database_uri
    app.config.from_object(config[config_name])
    if service_name:
        app.config['SERVICE_NAME'] = service_name
    if config_overrides:
        app.config.update(config_overrides)

    service_name = app.config['SERVICE_NAME']
    if service_name not in SERVICE_NAMES:
        raise ValueError(f"Unknown SERVICE_NAME: {service_name}")

    # Every role owns its own database
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = get_database_uri(service_name)

    # Initialize W3C Trace Context middleware
    from agrochain.api.middlewares.trace_context import TraceContextMiddleware
    TraceContextMiddleware(app)

    # Initialize database
    from agrochain.database import init_db
    init_db(app)

    # CORS setup
    CORS(app, origins=app.config.get('CORS_ORIGINS', ['*']))

    # Configure logging
    if not app.testing:
        logging.basicConfig(
            level=getattr(logging, app.config['LOG_LEVEL']),
            format='%(asctime)s %(levelname)s %(name)s: %(message)s'
        )

    # Event emitters (after the database, the dead-letter store needs it)
    from agrochain.events import init_events
    init_events(app)

    _register_service_api(app)

    # Register operational/health blueprint
    from agrochain.api.controllers import health_bp, outbox_bp
    app.register_blueprint(health_bp)
    app.register_blueprint(outbox_bp)
    app.logger.info("Operational endpoints registered successfully")

    # Register error handlers
    from agrochain.utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    # CLI commands
    from agrochain.cli import register_commands
    register_commands(app)

    return app


def init_database(app):
    """Create the tables of this service"""
    from agrochain.database import db, create_service_tables
    with app.app_context():
        try:
            from sqlalchemy import text
            db.session.execute(text('SELECT 1'))
            tables = create_service_tables(app.config['SERVICE_NAME'])
            app.logger.info(f"Database tables created successfully: {', '.join(tables)}")
            return True
        except Exception as e:
            app.logger.error(f"Failed to create database tables: {e}")
            if os.environ.get('FLASK_ENV') == 'production':
                raise
            app.logger.warning("Continuing without database connection in development mode")
            return False
