"""
Inventory routes.
"""
from flask import Blueprint, jsonify, request

from workshop.auth import with_context
from workshop.models import STAFF_ROLES
from workshop.schemas import (
    InventoryItemCreate, InventoryItemUpdate, StockAdjustment, parse_payload,
)
from workshop.services import inventory

inventory_bp = Blueprint('inventory', __name__, url_prefix='/inventory')


@inventory_bp.route('', methods=['GET'])
@with_context
def get_inventory(ctx):
    """Get all inventory items"""
    ctx.require_role(*STAFF_ROLES)
    items = inventory.list_items(
        search=request.args.get('search'),
        category=request.args.get('category'),
        low_stock_only=request.args.get('low_stock', '').lower() in ('1', 'true', 'yes'),
    )
    return jsonify({
        'success': True,
        'data': [item.to_dict() for item in items]
    }), 200


@inventory_bp.route('/<int:item_id>', methods=['GET'])
@with_context
def get_inventory_item(ctx, item_id):
    ctx.require_role(*STAFF_ROLES)
    return jsonify({
        'success': True,
        'data': inventory.get_item(item_id).to_dict()
    }), 200


@inventory_bp.route('', methods=['POST'])
@with_context
def create_inventory_item(ctx):
    """Create new inventory item"""
    payload = parse_payload(InventoryItemCreate, request.get_json(silent=True))
    item = inventory.create_item(ctx, **payload.model_dump())
    return jsonify({
        'success': True,
        'message': 'Inventory item created successfully',
        'data': item.to_dict()
    }), 201


@inventory_bp.route('/<int:item_id>', methods=['PUT'])
@with_context
def update_inventory_item(ctx, item_id):
    """Update inventory item"""
    payload = parse_payload(InventoryItemUpdate, request.get_json(silent=True))
    item = inventory.update_item(ctx, item_id, **payload.model_dump(exclude_none=True))
    return jsonify({
        'success': True,
        'message': 'Inventory item updated successfully',
        'data': item.to_dict()
    }), 200


@inventory_bp.route('/<int:item_id>/adjust', methods=['POST'])
@with_context
def adjust_stock(ctx, item_id):
    payload = parse_payload(StockAdjustment, request.get_json(silent=True))
    item = inventory.adjust_stock(ctx, item_id, payload.quantity_on_hand, payload.reason)
    return jsonify({
        'success': True,
        'message': 'Stock adjusted successfully',
        'data': item.to_dict()
    }), 200


@inventory_bp.route('/usage-logs', methods=['GET'])
@with_context
def usage_logs(ctx):
    ctx.require_role(*inventory.STOCK_MANAGERS)
    logs = inventory.list_usage_logs(
        item_id=request.args.get('item_id', type=int),
        limit=min(request.args.get('limit', 200, type=int), 1000),
    )
    return jsonify({
        'success': True,
        'data': [entry.to_dict() for entry in logs]
    }), 200
