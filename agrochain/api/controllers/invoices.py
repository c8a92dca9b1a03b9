"""
Invoice Controller - read access and payment of invoices
"""

from flask import Blueprint, request
from flask_restx import Api, Namespace, Resource
from agrochain.services import BillingService
from agrochain.utils.error_handlers import register_api_error_handlers
from agrochain.utils.schemas import InvoiceResponseSchema, InvoiceSearchSchema
import logging

logger = logging.getLogger(__name__)

invoices_ns = Namespace('invoices', description='Invoice operations')

invoice_response_schema = InvoiceResponseSchema()
invoice_search_schema = InvoiceSearchSchema()


@invoices_ns.route('')
class InvoiceList(Resource):
    @invoices_ns.doc('list_invoices')
    def get(self):
        """List invoices, optionally filtered by harvestId and paid"""
        filters = invoice_search_schema.load(request.args.to_dict())
        invoices = BillingService().list_invoices(**filters)
        return {'items': invoice_response_schema.dump(invoices, many=True)}, 200


@invoices_ns.route('/<int:invoice_id>')
class InvoiceItem(Resource):
    @invoices_ns.doc('get_invoice')
    def get(self, invoice_id):
        """Get invoice by ID"""
        invoice = BillingService().get_invoice(invoice_id)
        return invoice_response_schema.dump(invoice), 200


@invoices_ns.route('/<int:invoice_id>/pay')
class InvoicePayment(Resource):
    @invoices_ns.doc('pay_invoice')
    def post(self, invoice_id):
        """Mark invoice as paid"""
        invoice = BillingService().mark_paid(invoice_id)
        return invoice_response_schema.dump(invoice), 200


def create_invoices_blueprint():
    """Blueprint of the billing service API"""
    invoices_bp = Blueprint('invoices', __name__)
    api = Api(invoices_bp, version='1.0', title='Billing API',
              description='Invoices computed from harvests', doc='/docs/')
    register_api_error_handlers(api)
    api.add_namespace(invoices_ns)
    return invoices_bp
