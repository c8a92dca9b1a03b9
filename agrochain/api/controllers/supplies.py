"""
Supply Controller - inventory items and stock adjustments
"""

from flask import Blueprint, request
from flask_restx import Api, Namespace, Resource, fields
from agrochain.services import SupplyService
from agrochain.utils.error_handlers import register_api_error_handlers
from agrochain.utils.schemas import (
    SupplyRequestSchema, SupplyResponseSchema, StockAdjustmentRequestSchema
)
import logging

logger = logging.getLogger(__name__)

supplies_ns = Namespace('supplies', description='Supply operations')

# Initialize schemas
supply_request_schema = SupplyRequestSchema()
supply_response_schema = SupplyResponseSchema()
stock_adjustment_schema = StockAdjustmentRequestSchema()

supply_model = supplies_ns.model('SupplyRequest', {
    'itemName': fields.String(required=True, description='Item name, unique ignoring case'),
    'stock': fields.Float(description='Initial stock'),
})

stock_adjustment_model = supplies_ns.model('StockAdjustment', {
    'delta': fields.Float(required=True, description='Quantity to subtract; negative restocks'),
})


@supplies_ns.route('')
class SupplyList(Resource):
    @supplies_ns.doc('list_supplies')
    def get(self):
        """List supply items"""
        supplies = SupplyService().list_supplies()
        return {'items': supply_response_schema.dump(supplies, many=True)}, 200

    @supplies_ns.doc('create_supply')
    @supplies_ns.expect(supply_model)
    def post(self):
        """Create supply item"""
        data = supply_request_schema.load(request.get_json(silent=True) or {})
        supply = SupplyService().create_supply(**data)
        return supply_response_schema.dump(supply), 201


@supplies_ns.route('/<string:item_name>')
class SupplyItem(Resource):
    @supplies_ns.doc('get_supply')
    def get(self, item_name):
        """Get supply item by name"""
        supply = SupplyService().get_supply(item_name)
        return supply_response_schema.dump(supply), 200


@supplies_ns.route('/<string:item_name>/adjust')
class StockAdjustment(Resource):
    @supplies_ns.doc('adjust_stock')
    @supplies_ns.expect(stock_adjustment_model)
    def post(self, item_name):
        """Adjust stock and announce it as inventario_ajustado"""
        data = stock_adjustment_schema.load(request.get_json(silent=True) or {})
        supply = SupplyService().adjust_stock(item_name, data['delta'])
        return supply_response_schema.dump(supply), 200


def create_supplies_blueprint():
    """Blueprint of the supply service API"""
    supplies_bp = Blueprint('supplies', __name__)
    api = Api(supplies_bp, version='1.0', title='Supply API',
              description='Inventory stock tracking', doc='/docs/')
    register_api_error_handlers(api)
    api.add_namespace(supplies_ns)
    return supplies_bp
