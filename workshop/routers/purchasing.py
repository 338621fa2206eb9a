"""
Supplier and purchase order routes.
"""
from flask import Blueprint, jsonify, request

from workshop.auth import with_context
from workshop.errors import ValidationError
from workshop.models import PurchaseOrderStatus
from workshop.schemas import (
    PurchaseOrderCreate, PurchaseOrderStatusChange, SupplierCreate, SupplierUpdate, parse_payload,
)
from workshop.services import purchasing

suppliers_bp = Blueprint('suppliers', __name__, url_prefix='/suppliers')
purchase_orders_bp = Blueprint('purchase_orders', __name__, url_prefix='/purchase-orders')


@suppliers_bp.route('', methods=['GET'])
@with_context
def list_suppliers(ctx):
    ctx.require_role(*purchasing.PURCHASING_ROLES)
    return jsonify({
        'success': True,
        'data': [supplier.to_dict() for supplier in purchasing.list_suppliers()]
    }), 200


@suppliers_bp.route('', methods=['POST'])
@with_context
def create_supplier(ctx):
    payload = parse_payload(SupplierCreate, request.get_json(silent=True))
    supplier = purchasing.create_supplier(ctx, **payload.model_dump())
    return jsonify({
        'success': True,
        'message': 'Supplier created successfully',
        'data': supplier.to_dict()
    }), 201


@suppliers_bp.route('/<int:supplier_id>', methods=['PUT'])
@with_context
def update_supplier(ctx, supplier_id):
    payload = parse_payload(SupplierUpdate, request.get_json(silent=True))
    supplier = purchasing.update_supplier(ctx, supplier_id, **payload.model_dump(exclude_none=True))
    return jsonify({
        'success': True,
        'message': 'Supplier updated successfully',
        'data': supplier.to_dict()
    }), 200


@suppliers_bp.route('/<int:supplier_id>', methods=['DELETE'])
@with_context
def delete_supplier(ctx, supplier_id):
    purchasing.delete_supplier(ctx, supplier_id)
    return jsonify({
        'success': True,
        'message': 'Supplier deleted successfully'
    }), 200


@purchase_orders_bp.route('', methods=['GET'])
@with_context
def list_purchase_orders(ctx):
    ctx.require_role(*purchasing.PURCHASING_ROLES)
    status = request.args.get('status')
    if status:
        try:
            status = PurchaseOrderStatus(status)
        except ValueError:
            raise ValidationError(f'Invalid purchase order status: {status!r}') from None
    return jsonify({
        'success': True,
        'data': [order.to_dict() for order in purchasing.list_purchase_orders(status)]
    }), 200


@purchase_orders_bp.route('', methods=['POST'])
@with_context
def create_purchase_order(ctx):
    payload = parse_payload(PurchaseOrderCreate, request.get_json(silent=True))
    order = purchasing.create_purchase_order(
        ctx,
        payload.supplier_id,
        [(line.item_id, line.quantity, line.unit_price) for line in payload.lines],
    )
    return jsonify({
        'success': True,
        'message': 'Purchase order created successfully',
        'data': order.to_dict()
    }), 201


@purchase_orders_bp.route('/<int:po_id>', methods=['GET'])
@with_context
def get_purchase_order(ctx, po_id):
    ctx.require_role(*purchasing.PURCHASING_ROLES)
    return jsonify({
        'success': True,
        'data': purchasing.get_purchase_order(po_id).to_dict()
    }), 200


@purchase_orders_bp.route('/<int:po_id>/status', methods=['PUT'])
@with_context
def update_purchase_order_status(ctx, po_id):
    payload = parse_payload(PurchaseOrderStatusChange, request.get_json(silent=True))
    order = purchasing.update_purchase_order_status(ctx, po_id, payload.status)
    return jsonify({
        'success': True,
        'message': f'Purchase order marked {order.status.value}',
        'data': order.to_dict()
    }), 200


@purchase_orders_bp.route('/<int:po_id>', methods=['DELETE'])
@with_context
def delete_purchase_order(ctx, po_id):
    purchasing.delete_purchase_order(ctx, po_id)
    return jsonify({
        'success': True,
        'message': 'Purchase order deleted successfully'
    }), 200
