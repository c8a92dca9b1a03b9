"""
Pytest configuration for integration tests

Each service role runs as its own app over its own SQLite file, the way
the three processes own separate databases in a deployment.
"""

import pytest

from config import HARVEST_SERVICE, SUPPLY_SERVICE, BILLING_SERVICE
from agrochain import create_app
from agrochain.database import db, create_service_tables


def _file_app(tmp_path, service_name):
    database = tmp_path / f"{service_name.replace('-', '_')}.db"
    app = create_app('testing', service_name=service_name, config_overrides={
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{database}',
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 15}},
    })
    with app.app_context():
        create_service_tables(service_name)
    return app


@pytest.fixture
def services(tmp_path):
    """One app per service role."""
    apps = {name: _file_app(tmp_path, name) for name in (HARVEST_SERVICE, SUPPLY_SERVICE, BILLING_SERVICE)}
    yield apps
    for app in apps.values():
        with app.app_context():
            db.session.remove()
            db.engine.dispose()


@pytest.fixture
def harvest_service_app(services):
    return services[HARVEST_SERVICE]


@pytest.fixture
def supply_service_app(services):
    return services[SUPPLY_SERVICE]


@pytest.fixture
def billing_service_app(services):
    return services[BILLING_SERVICE]
