"""
Database configuration and instance. Each service process binds its own engine.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

# Initialize database instance
db = SQLAlchemy()
migrate = Migrate()


def init_db(app):
    """Initialize database with Flask app"""
    db.init_app(app)
    migrate.init_app(app, db)
    return db


def create_service_tables(service_name):
    """Create only the tables owned by one service"""
    from agrochain.models import SERVICE_MODELS
    tables = [model.__table__ for model in SERVICE_MODELS[service_name]]
    db.metadata.create_all(bind=db.engine, tables=tables)
    return [table.name for table in tables]
