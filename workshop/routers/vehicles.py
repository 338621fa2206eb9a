"""
Vehicle routes.
"""
from flask import Blueprint, jsonify, request

from workshop.auth import with_context
from workshop.schemas import VehicleCreate, VehicleUpdate, parse_payload
from workshop.services import vehicles

vehicles_bp = Blueprint('vehicles', __name__, url_prefix='/vehicles')


@vehicles_bp.route('', methods=['GET'])
@with_context
def list_vehicles(ctx):
    """Get vehicles; drivers only see their own."""
    found = vehicles.list_vehicles(ctx, search=request.args.get('search'))
    return jsonify({
        'success': True,
        'data': [vehicle.to_dict() for vehicle in found]
    }), 200


@vehicles_bp.route('/<int:vehicle_id>', methods=['GET'])
@with_context
def get_vehicle(ctx, vehicle_id):
    return jsonify({
        'success': True,
        'data': vehicles.get_vehicle(ctx, vehicle_id).to_dict()
    }), 200


@vehicles_bp.route('', methods=['POST'])
@with_context
def create_vehicle(ctx):
    payload = parse_payload(VehicleCreate, request.get_json(silent=True))
    vehicle = vehicles.register_vehicle(ctx, **payload.model_dump())
    return jsonify({
        'success': True,
        'message': 'Vehicle registered successfully',
        'data': vehicle.to_dict()
    }), 201


@vehicles_bp.route('/<int:vehicle_id>', methods=['PUT'])
@with_context
def update_vehicle(ctx, vehicle_id):
    payload = parse_payload(VehicleUpdate, request.get_json(silent=True))
    vehicle = vehicles.update_vehicle(ctx, vehicle_id, **payload.model_dump())
    return jsonify({
        'success': True,
        'message': 'Vehicle updated successfully',
        'data': vehicle.to_dict()
    }), 200
