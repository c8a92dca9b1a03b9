import pytest
from decimal import Decimal
from sqlalchemy.exc import IntegrityError
from agrochain.database import db
from agrochain.models import (
    Farmer, Harvest, HarvestStatus, Supply, Invoice, OutboxMessage, OutboxStatus,
    SERVICE_MODELS, normalize_item_name
)
from config import HARVEST_SERVICE, SUPPLY_SERVICE, BILLING_SERVICE
from tests.conftest import (
    create_test_farmer, create_test_harvest, create_test_supply, create_test_invoice
)


class TestFarmer:
    """Test Farmer model."""

    def test_create_farmer(self, db_session):
        """Test creating a farmer."""
        farmer = Farmer(name='María López')

        db_session.add(farmer)
        db_session.commit()

        assert farmer.id is not None
        assert farmer.created_at is not None
        assert farmer.to_dict()['name'] == 'María López'

    def test_farmer_harvests_relationship(self, db_session, sample_farmer):
        create_test_harvest(db_session, sample_farmer)
        create_test_harvest(db_session, sample_farmer, product='Café Premium')

        assert len(sample_farmer.harvests) == 2


class TestHarvest:
    """Test Harvest model."""

    def test_create_harvest_defaults(self, db_session, sample_farmer):
        """Test a new harvest gets a uuid and starts REGISTERED."""
        harvest = Harvest(farmer_id=sample_farmer.id, product='Arroz Oro', tonnes=2.0)

        db_session.add(harvest)
        db_session.commit()

        assert len(harvest.id) == 36
        assert harvest.status == HarvestStatus.REGISTERED
        assert harvest.invoice_id is None
        assert harvest.is_invoiced is False

    def test_is_invoiced_property(self, db_session, sample_farmer):
        harvest = create_test_harvest(db_session, sample_farmer,
                                      status=HarvestStatus.INVOICED, invoice_id='7')

        assert harvest.is_invoiced is True

    def test_to_dict(self, db_session, sample_farmer):
        harvest = create_test_harvest(db_session, sample_farmer, tonnes=3.5)

        data = harvest.to_dict()

        assert data['id'] == harvest.id
        assert data['farmer_id'] == sample_farmer.id
        assert data['tonnes'] == 3.5
        assert data['status'] == 'REGISTERED'
        assert data['invoice_id'] is None

    def test_repr(self, db_session, sample_farmer):
        harvest = create_test_harvest(db_session, sample_farmer)
        assert 'REGISTERED' in repr(harvest)


class TestSupply:
    """Test Supply model."""

    def test_normalize_item_name(self):
        assert normalize_item_name('  Arroz ORO ') == 'arroz oro'
        assert normalize_item_name(None) == ''

    def test_name_key_is_derived(self, supply_app):
        supply = create_test_supply(db.session, item_name='Fertilizante NPK')

        assert supply.name_key == 'fertilizante npk'
        assert supply.is_out_of_stock is False

    def test_item_name_unique_ignoring_case(self, supply_app):
        create_test_supply(db.session, item_name='Arroz Oro')

        with pytest.raises(IntegrityError):
            create_test_supply(db.session, item_name='ARROZ ORO')
        db.session.rollback()

    def test_is_out_of_stock(self, supply_app):
        supply = create_test_supply(db.session, stock=0)
        assert supply.is_out_of_stock is True
        assert supply.to_dict()['is_out_of_stock'] is True


class TestInvoice:
    """Test Invoice model."""

    def test_create_invoice(self, billing_app):
        invoice = create_test_invoice(db.session)

        assert invoice.id is not None
        assert invoice.paid is False
        assert Decimal(invoice.amount) == Decimal('240')

    def test_one_invoice_per_harvest(self, billing_app):
        create_test_invoice(db.session, harvest_id='dup-harvest')

        with pytest.raises(IntegrityError):
            create_test_invoice(db.session, harvest_id='dup-harvest')
        db.session.rollback()

    def test_to_dict_uses_floats(self, billing_app):
        invoice = create_test_invoice(db.session, unit_price=300, amount=900, tonnes=3)

        data = invoice.to_dict()

        assert data['unit_price'] == 300.0
        assert data['amount'] == 900.0
        assert data['paid_at'] is None


class TestOutboxMessage:
    """Test OutboxMessage model."""

    def test_defaults(self, db_session):
        message = OutboxMessage(channel='events', topic='nueva_cosecha',
                                payload={'harvestId': 'h-1', 'product': 'Arroz Oro', 'tonnes': 2.0})
        db_session.add(message)
        db_session.commit()

        assert message.status == OutboxStatus.DEAD_LETTERED
        assert message.attempts == 0
        assert message.to_dict()['payload']['harvestId'] == 'h-1'


class TestServiceModels:
    """Every service owns only its own tables."""

    def test_tables_per_service(self):
        tables = {name: {model.__tablename__ for model in models}
                  for name, models in SERVICE_MODELS.items()}

        assert tables[HARVEST_SERVICE] == {'farmers', 'harvests', 'outbox_messages'}
        assert tables[SUPPLY_SERVICE] == {'supplies', 'outbox_messages'}
        assert tables[BILLING_SERVICE] == {'invoices', 'outbox_messages'}

    def test_harvest_database_has_no_invoices(self, app):
        from sqlalchemy import inspect
        table_names = inspect(db.engine).get_table_names()

        assert 'harvests' in table_names
        assert 'invoices' not in table_names
        assert 'supplies' not in table_names
