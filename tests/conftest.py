import os
import pytest
from unittest.mock import MagicMock

# Set test environment variables before importing the app
os.environ['FLASK_ENV'] = 'testing'
os.environ.pop('DATABASE_URL', None)

from config import HARVEST_SERVICE, SUPPLY_SERVICE, BILLING_SERVICE
from agrochain import create_app
from agrochain.database import db, create_service_tables
from agrochain.events import EXTENSION_KEY, EVENTS_CHANNEL, CALLBACKS_CHANNEL
from agrochain.models import Farmer, Harvest, HarvestStatus, Supply, Invoice


def build_test_app(service_name, **overrides):
    """Application for one service role over in-memory SQLite."""
    return create_app('testing', service_name=service_name, config_overrides=overrides or None)


def _service_app(service_name, **overrides):
    app = build_test_app(service_name, **overrides)
    with app.app_context():
        create_service_tables(service_name)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def harvest_app():
    """Harvest service application."""
    yield from _service_app(HARVEST_SERVICE)


@pytest.fixture
def supply_app():
    """Supply service application."""
    yield from _service_app(SUPPLY_SERVICE)


@pytest.fixture
def billing_app():
    """Billing service application."""
    yield from _service_app(BILLING_SERVICE)


@pytest.fixture
def app(harvest_app):
    """Default application for the tests."""
    return harvest_app


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def supply_client(supply_app):
    return supply_app.test_client()


@pytest.fixture
def billing_client(billing_app):
    return billing_app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def db_session(app):
    """Database session of the default app."""
    yield db.session
    db.session.rollback()


@pytest.fixture
def sample_farmer(db_session):
    """Create a sample farmer for testing."""
    return create_test_farmer(db_session, name='Juan Pérez')


@pytest.fixture
def mock_emitter():
    """Emitter double that records emitted events."""
    emitter = MagicMock()
    emitter.emit.return_value = MagicMock(delivered=True)
    return emitter


# Helper functions for tests
def event_sink(app, channel=EVENTS_CHANNEL):
    """In-memory sink behind one emitter of an app."""
    return app.extensions[EXTENSION_KEY][channel].sink


def callback_sink(app):
    return event_sink(app, CALLBACKS_CHANNEL)


def create_test_farmer(db_session, **kwargs):
    """Create a test farmer with default values."""
    defaults = {
        'name': 'Test Farmer'
    }
    defaults.update(kwargs)

    farmer = Farmer(**defaults)
    db_session.add(farmer)
    db_session.commit()
    return farmer


def create_test_harvest(db_session, farmer, **kwargs):
    """Create a test harvest with default values."""
    defaults = {
        'farmer_id': farmer.id,
        'product': 'Arroz Oro',
        'tonnes': 2.0,
        'status': HarvestStatus.REGISTERED
    }
    defaults.update(kwargs)

    harvest = Harvest(**defaults)
    db_session.add(harvest)
    db_session.commit()
    return harvest


def create_test_supply(db_session, **kwargs):
    """Create a test supply item with default values."""
    defaults = {
        'item_name': 'Arroz Oro',
        'stock': 100.0
    }
    defaults.update(kwargs)

    supply = Supply(**defaults)
    db_session.add(supply)
    db_session.commit()
    return supply


def create_test_invoice(db_session, **kwargs):
    """Create a test invoice with default values."""
    defaults = {
        'harvest_id': 'harvest-001',
        'product': 'Arroz Oro',
        'tonnes': 2.0,
        'unit_price': 120,
        'amount': 240,
        'paid': False
    }
    defaults.update(kwargs)

    invoice = Invoice(**defaults)
    db_session.add(invoice)
    db_session.commit()
    return invoice


# Test data generators
def generate_harvest_data(**kwargs):
    """Generate harvest registration test data."""
    defaults = {
        'farmerId': 1,
        'product': 'Arroz Oro',
        'tonnes': 2
    }
    defaults.update(kwargs)
    return defaults


def generate_new_harvest_event(**kwargs):
    """Generate a nueva_cosecha payload."""
    defaults = {
        'harvestId': '9b2f7c1e-2f43-4a4e-9d55-0c2f7c1e2f43',
        'product': 'Arroz Oro',
        'tonnes': 2
    }
    defaults.update(kwargs)
    return defaults
