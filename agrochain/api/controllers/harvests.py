"""
Harvest Controller - harvest registration and billing status callback
"""

from flask import Blueprint, request
from flask_restx import Api, Namespace, Resource, fields
from agrochain.services import HarvestService
from agrochain.utils.error_handlers import register_api_error_handlers
from agrochain.utils.schemas import (
    HarvestRequestSchema, HarvestResponseSchema,
    HarvestStatusRequestSchema, HarvestSearchSchema
)
import logging

logger = logging.getLogger(__name__)

harvests_ns = Namespace('harvests', description='Harvest operations')

# Initialize schemas
harvest_request_schema = HarvestRequestSchema()
harvest_response_schema = HarvestResponseSchema()
harvest_status_schema = HarvestStatusRequestSchema()
harvest_search_schema = HarvestSearchSchema()

harvest_model = harvests_ns.model('HarvestRequest', {
    'farmerId': fields.Integer(required=True, description='Registered farmer'),
    'product': fields.String(required=True, description='Product name'),
    'tonnes': fields.Float(required=True, description='Harvested quantity in tonnes'),
})

harvest_status_model = harvests_ns.model('HarvestStatusRequest', {
    'invoiceId': fields.String(required=True, description='Invoice issued by the billing service'),
})


@harvests_ns.route('')
class HarvestList(Resource):
    @harvests_ns.doc('list_harvests')
    def get(self):
        """List harvests, optionally filtered by farmerId and status"""
        filters = harvest_search_schema.load(request.args.to_dict())
        harvests = HarvestService().list_harvests(**filters)
        return {'items': harvest_response_schema.dump(harvests, many=True)}, 200

    @harvests_ns.doc('register_harvest')
    @harvests_ns.expect(harvest_model)
    def post(self):
        """Register a harvest and announce it as nueva_cosecha"""
        data = harvest_request_schema.load(request.get_json(silent=True) or {})
        harvest = HarvestService().register(**data)
        return harvest_response_schema.dump(harvest), 201


@harvests_ns.route('/<string:harvest_id>')
class HarvestItem(Resource):
    @harvests_ns.doc('get_harvest')
    def get(self, harvest_id):
        """Get harvest by ID"""
        harvest = HarvestService().get_harvest(harvest_id)
        return harvest_response_schema.dump(harvest), 200


@harvests_ns.route('/<string:harvest_id>/status')
class HarvestStatusCallback(Resource):
    @harvests_ns.doc('mark_harvest_invoiced')
    @harvests_ns.expect(harvest_status_model)
    def put(self, harvest_id):
        """Billing callback: mark the harvest as invoiced"""
        data = harvest_status_schema.load(request.get_json(silent=True) or {})
        harvest = HarvestService().mark_invoiced(harvest_id, data['invoice_id'])
        return harvest_response_schema.dump(harvest), 200


def create_harvests_blueprint():
    """Blueprint of the harvest service API"""
    harvests_bp = Blueprint('harvests', __name__)
    api = Api(harvests_bp, version='1.0', title='Harvest Registry API',
              description='Central registry of farmer harvests', doc='/docs/')
    register_api_error_handlers(api)
    api.add_namespace(harvests_ns)
    return harvests_bp
