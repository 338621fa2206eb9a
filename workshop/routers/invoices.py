"""
Invoice routes.
"""
from flask import Blueprint, jsonify

from workshop.auth import with_context
from workshop.routers.reports import date_range
from workshop.services import invoices

invoices_bp = Blueprint('invoices', __name__, url_prefix='/invoices')


@invoices_bp.route('', methods=['GET'])
@with_context
def list_invoices(ctx):
    ctx.require_role(*invoices.INVOICE_ROLES)
    start, end = date_range()
    return jsonify({
        'success': True,
        'data': [invoice.to_dict() for invoice in invoices.list_invoices(start, end)]
    }), 200


@invoices_bp.route('/<int:invoice_id>', methods=['GET'])
@with_context
def get_invoice(ctx, invoice_id):
    ctx.require_role(*invoices.INVOICE_ROLES)
    return jsonify({
        'success': True,
        'data': invoices.get_invoice(invoice_id).to_dict()
    }), 200
