from marshmallow import Schema, fields, validate, EXCLUDE
from agrochain.models import HarvestStatus, OutboxStatus


class HarvestRequestSchema(Schema):
    """Schema for registering a harvest"""

    class Meta:
        unknown = EXCLUDE

    farmer_id = fields.Integer(required=True, data_key='farmerId', strict=True)
    product = fields.String(required=True, validate=validate.Length(min=1, max=200))
    tonnes = fields.Float(required=True, allow_nan=False)


class InvoiceReference(fields.Field):
    """Invoice id sent by billing: a non-empty string or an integer"""

    default_error_messages = {
        'invalid': 'Invoice id must be a non-empty string or an integer.'
    }

    def _deserialize(self, value, attr, data, **kwargs):
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            raise self.make_error('invalid')
        value = str(value).strip()
        if not value:
            raise self.make_error('invalid')
        return value


class HarvestStatusRequestSchema(Schema):
    """Schema for the billing callback"""

    class Meta:
        unknown = EXCLUDE

    invoice_id = InvoiceReference(required=True, data_key='invoiceId')


class HarvestResponseSchema(Schema):
    """Schema for harvest responses"""
    id = fields.String(data_key='harvestId')
    farmer_id = fields.Integer(data_key='farmerId')
    product = fields.String()
    tonnes = fields.Float()
    status = fields.Enum(HarvestStatus)
    invoice_id = fields.String(data_key='invoiceId', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')


class HarvestSearchSchema(Schema):
    """Schema for harvest list filters"""

    class Meta:
        unknown = EXCLUDE

    farmer_id = fields.Integer(data_key='farmerId')
    status = fields.Enum(HarvestStatus)


class SupplyRequestSchema(Schema):
    """Schema for creating supply items"""

    class Meta:
        unknown = EXCLUDE

    item_name = fields.String(required=True, data_key='itemName', validate=validate.Length(min=1, max=200))
    stock = fields.Float(load_default=0.0, allow_nan=False)


class StockAdjustmentRequestSchema(Schema):
    """Schema for stock adjustments"""

    class Meta:
        unknown = EXCLUDE

    delta = fields.Float(required=True, allow_nan=False)


class SupplyResponseSchema(Schema):
    """Schema for supply responses"""
    id = fields.Integer()
    item_name = fields.String(data_key='itemName')
    stock = fields.Float()
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')


class InvoiceResponseSchema(Schema):
    """Schema for invoice responses"""
    id = fields.Integer(data_key='invoiceId')
    harvest_id = fields.String(data_key='harvestId')
    product = fields.String()
    tonnes = fields.Float()
    unit_price = fields.Float(data_key='unitPrice')
    amount = fields.Float()
    paid = fields.Boolean()
    paid_at = fields.DateTime(data_key='paidAt', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')


class InvoiceSearchSchema(Schema):
    """Schema for invoice list filters"""

    class Meta:
        unknown = EXCLUDE

    harvest_id = fields.String(data_key='harvestId')
    paid = fields.Boolean()


class OutboxMessageResponseSchema(Schema):
    """Schema for dead letter responses"""
    id = fields.String()
    channel = fields.String()
    topic = fields.String()
    payload = fields.Dict()
    dedupe_key = fields.String(data_key='dedupeKey', allow_none=True)
    status = fields.Enum(OutboxStatus)
    attempts = fields.Integer()
    last_error = fields.String(data_key='lastError', allow_none=True)
    created_at = fields.DateTime(data_key='createdAt')
    updated_at = fields.DateTime(data_key='updatedAt')


class ReplayRequestSchema(Schema):
    """Schema for dead letter replay"""

    class Meta:
        unknown = EXCLUDE

    limit = fields.Integer(validate=validate.Range(min=1, max=1000), allow_none=True)
