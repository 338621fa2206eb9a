"""
Report routes.
"""
from datetime import datetime, timedelta

from flask import Blueprint, jsonify, request

from workshop.auth import with_context
from workshop.errors import ValidationError
from workshop.services import reports

reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def date_range():
    """
    Read ``start`` and ``end`` (YYYY-MM-DD) from the query string. The end
    date is inclusive, so the returned bound is the following midnight.
    """
    bounds = []
    for name in ('start', 'end'):
        value = request.args.get(name)
        if not value:
            bounds.append(None)
            continue
        try:
            bounds.append(datetime.strptime(value, '%Y-%m-%d'))
        except ValueError:
            raise ValidationError(f'{name} must be a date in YYYY-MM-DD format') from None

    start, end = bounds
    if end is not None:
        end += timedelta(days=1)
    if start and end and start >= end:
        raise ValidationError('start must not be after end')
    return start, end


@reports_bp.route('/dashboard', methods=['GET'])
@with_context
def get_dashboard(ctx):
    """Get dashboard statistics"""
    return jsonify({
        'success': True,
        'data': reports.dashboard_stats(ctx)
    }), 200


@reports_bp.route('/job-cards', methods=['GET'])
@with_context
def job_card_report(ctx):
    start, end = date_range()
    return jsonify({
        'success': True,
        'data': reports.job_card_summary(ctx, start, end)
    }), 200


@reports_bp.route('/revenue', methods=['GET'])
@with_context
def revenue_report(ctx):
    start, end = date_range()
    return jsonify({
        'success': True,
        'data': reports.revenue_summary(ctx, start, end)
    }), 200
