"""
Job card routes: intake, the status engine, parts and the job history.
"""
from flask import Blueprint, jsonify, request

from workshop.auth import with_context
from workshop.errors import InvalidStatus, ValidationError
from workshop.models import JobStatus, PartsRequestStatus
from workshop.schemas import (
    JobAssign, JobCardCreate, JobCardQuickCreate, JobCardUpdate, PartLine, PartsReplace,
    PartsRequestCreate, PartsRequestReview, StatusChange, WorkLogCreate, parse_payload,
)
from workshop.services import invoices, job_cards, status_engine

job_cards_bp = Blueprint('job_cards', __name__, url_prefix='/job-cards')
parts_requests_bp = Blueprint('parts_requests', __name__, url_prefix='/parts-requests')


def _status_filter():
    status = request.args.get('status')
    if not status:
        return None
    try:
        return JobStatus(status)
    except ValueError:
        raise InvalidStatus(f"Invalid status provided: {status!r}.") from None


def _job_response(job, message, status_code=200):
    return jsonify({
        'success': True,
        'message': message,
        'data': job.to_dict(include_parts=True)
    }), status_code


@job_cards_bp.route('', methods=['GET'])
@with_context
def list_job_cards(ctx):
    found = job_cards.list_job_cards(
        ctx,
        status=_status_filter(),
        mechanic_id=request.args.get('mechanic_id', type=int),
        vehicle_id=request.args.get('vehicle_id', type=int),
    )
    return jsonify({
        'success': True,
        'data': [job.to_dict() for job in found]
    }), 200


@job_cards_bp.route('', methods=['POST'])
@with_context
def create_job_card(ctx):
    data = request.get_json(silent=True)
    if isinstance(data, dict) and data.get('registration_number') and not data.get('vehicle_id'):
        payload = parse_payload(JobCardQuickCreate, data)
        job = job_cards.quick_create_job_card(
            ctx, payload.registration_number, payload.issue_description,
            driver_id=payload.driver_id, urgency=payload.urgency,
        )
    else:
        payload = parse_payload(JobCardCreate, data)
        job = job_cards.create_job_card(
            ctx, payload.vehicle_id, payload.issue_description, urgency=payload.urgency,
        )
    return _job_response(job, 'Job card created successfully', 201)


@job_cards_bp.route('/<int:job_card_id>', methods=['GET'])
@with_context
def get_job_card(ctx, job_card_id):
    job = job_cards.get_job_card(job_card_id)
    job_cards.ensure_visible_to(ctx, job)
    return jsonify({
        'success': True,
        'data': job.to_dict(include_parts=True)
    }), 200


@job_cards_bp.route('/<int:job_card_id>', methods=['PUT'])
@job_cards_bp.route('/<int:job_card_id>/status', methods=['PUT'])
@with_context
def update_job_card(ctx, job_card_id):
    """Full edit: status, labor cost, assignments and optionally the parts list."""
    payload = parse_payload(JobCardUpdate, request.get_json(silent=True))
    job = status_engine.update_job_card(
        ctx,
        job_card_id,
        new_status=payload.status,
        labor_cost=payload.labor_cost,
        mechanic_id=payload.assigned_mechanic_id,
        service_advisor_id=payload.service_advisor_id,
        parts=[line.as_tuple() for line in payload.parts],
        cancellation_reason=payload.cancellation_reason,
    )
    return _job_response(job, 'Job card updated successfully')


@job_cards_bp.route('/<int:job_card_id>/assign', methods=['POST'])
@with_context
def assign_job(ctx, job_card_id):
    payload = parse_payload(JobAssign, request.get_json(silent=True))
    job = status_engine.assign_job(
        ctx,
        job_card_id,
        payload.assigned_mechanic_id,
        labor_cost=payload.labor_cost,
        service_advisor_id=payload.service_advisor_id,
        parts=[line.as_tuple() for line in payload.parts],
    )
    return _job_response(job, 'Job assigned successfully')


@job_cards_bp.route('/<int:job_card_id>/parts', methods=['GET'])
@with_context
def list_parts(ctx, job_card_id):
    job = job_cards.get_job_card(job_card_id)
    job_cards.ensure_visible_to(ctx, job)
    return jsonify({
        'success': True,
        'data': [part.to_dict() for part in job.parts]
    }), 200


@job_cards_bp.route('/<int:job_card_id>/parts', methods=['PUT'])
@with_context
def replace_parts(ctx, job_card_id):
    payload = parse_payload(PartsReplace, request.get_json(silent=True))
    job = job_cards.replace_parts_for_job_card(
        ctx, job_card_id, [line.as_tuple() for line in payload.parts]
    )
    return _job_response(job, 'Parts updated successfully')


@job_cards_bp.route('/<int:job_card_id>/technician-status', methods=['POST'])
@with_context
def technician_status(ctx, job_card_id):
    payload = parse_payload(StatusChange, request.get_json(silent=True))
    job = status_engine.update_technician_status(ctx, job_card_id, payload.status)
    return _job_response(job, 'Job status updated successfully')


@job_cards_bp.route('/<int:job_card_id>/work-log', methods=['POST'])
@with_context
def work_log(ctx, job_card_id):
    payload = parse_payload(WorkLogCreate, request.get_json(silent=True))
    entry = job_cards.log_work(ctx, job_card_id, payload.description)
    return jsonify({
        'success': True,
        'message': 'Work log added',
        'data': entry.to_dict()
    }), 201


@job_cards_bp.route('/<int:job_card_id>/parts-used', methods=['POST'])
@with_context
def parts_used(ctx, job_card_id):
    payload = parse_payload(PartLine, request.get_json(silent=True))
    part = job_cards.record_part_usage(ctx, job_card_id, payload.item_id, payload.quantity)
    return jsonify({
        'success': True,
        'message': 'Part usage recorded',
        'data': part.to_dict()
    }), 201


@job_cards_bp.route('/<int:job_card_id>/finance-status', methods=['POST'])
@with_context
def finance_status(ctx, job_card_id):
    payload = parse_payload(StatusChange, request.get_json(silent=True))
    job = status_engine.update_finance_status(ctx, job_card_id, payload.status, payload.reason)
    return _job_response(job, 'Finance status updated successfully')


@job_cards_bp.route('/<int:job_card_id>/updates', methods=['GET'])
@with_context
def list_updates(ctx, job_card_id):
    job_cards.ensure_visible_to(ctx, job_cards.get_job_card(job_card_id))
    return jsonify({
        'success': True,
        'data': [entry.to_dict() for entry in job_cards.list_updates(job_card_id)]
    }), 200


@job_cards_bp.route('/<int:job_card_id>/invoice', methods=['POST'])
@with_context
def generate_invoice(ctx, job_card_id):
    invoice = invoices.generate_invoice(ctx, job_card_id)
    return jsonify({
        'success': True,
        'message': 'Invoice generated successfully',
        'data': invoice.to_dict()
    }), 201


@job_cards_bp.route('/<int:job_card_id>/invoice', methods=['GET'])
@with_context
def get_job_invoice(ctx, job_card_id):
    job_cards.ensure_visible_to(ctx, job_cards.get_job_card(job_card_id))
    return jsonify({
        'success': True,
        'data': invoices.get_invoice_for_job_card(job_card_id).to_dict()
    }), 200


@parts_requests_bp.route('', methods=['GET'])
@with_context
def list_parts_requests(ctx):
    ctx.require_role(*job_cards.PARTS_DESK)
    status = request.args.get('status')
    if status and status not in (PartsRequestStatus.PENDING, PartsRequestStatus.APPROVED,
                                 PartsRequestStatus.REJECTED):
        raise ValidationError(f'Invalid parts request status: {status!r}')
    found = job_cards.list_parts_requests(
        status=status, job_card_id=request.args.get('job_card_id', type=int)
    )
    return jsonify({
        'success': True,
        'data': [parts_request.to_dict() for parts_request in found]
    }), 200


@parts_requests_bp.route('', methods=['POST'])
@with_context
def request_parts(ctx):
    payload = parse_payload(PartsRequestCreate, request.get_json(silent=True))
    parts_request = job_cards.request_parts(ctx, payload.job_card_id, payload.item_id, payload.quantity)
    return jsonify({
        'success': True,
        'message': 'Parts request submitted',
        'data': parts_request.to_dict()
    }), 201


@parts_requests_bp.route('/<int:request_id>/review', methods=['POST'])
@with_context
def review_parts_request(ctx, request_id):
    payload = parse_payload(PartsRequestReview, request.get_json(silent=True))
    parts_request = job_cards.review_parts_request(ctx, request_id, payload.approve)
    return jsonify({
        'success': True,
        'message': f'Parts request {parts_request.status}',
        'data': parts_request.to_dict()
    }), 200
