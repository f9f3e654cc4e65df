"""
Data Routes
JSON CRUD for every academy collection plus the fee record actions
"""

from flask import Blueprint, request, jsonify, session, current_app
import logging
import re

import record_store
from record_store import NotFoundError
from fee_models import FeeRecord
from validators import RecordValidator
from auth_helpers import require_fees_visible
from fee_helpers import (
    current_period, is_overdue, ensure_current_month_fees, run_fee_generation,
    mark_fee_paid, mark_fee_pending, apply_prune, remove_duplicate_fee_records,
    refresh_overdue_status
)
from report_helpers import filter_fee_records

logger = logging.getLogger(__name__)

# Session key set once fee auto-generation has been checked for this login
FEES_CHECKED_KEY = 'fees_checked_for'


def snake_case(key):
    """studentName -> student_name; snake_case keys pass through"""
    return re.sub(r'(?<!^)(?=[A-Z])', '_', key).lower()


def request_fields():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    return {snake_case(k): v for k, v in data.items()}


def month_arg():
    """?month= normalized to its canonical name; None when absent"""
    month = request.args.get('month')
    if not month:
        return None
    return RecordValidator.validate_month(month)


def serialize(record):
    data = record.to_dict()
    if isinstance(record, FeeRecord):
        data['is_overdue'] = is_overdue(record)
    return data


def _auto_generate_fees():
    """Generate the current month's fees at most once per login session"""
    if not current_app.config.get('AUTO_GENERATE_FEES'):
        return
    month, year = current_period()
    period = f"{month} {year}"
    if session.get(FEES_CHECKED_KEY) == period:
        return

    result = ensure_current_month_fees(
        carry_forward_arrears=current_app.config.get('FEE_CARRY_FORWARD_ARREARS', False)
    )
    session[FEES_CHECKED_KEY] = period
    if result is not None:
        logger.info(f"Auto-generated {len(result['created'])} fee records for {period}")


def register_fee_routes(api_bp, require_auth):
    """Fee record actions: status transitions, generation and cleanup"""

    @api_bp.route('/fee-records/<int:record_id>/mark-paid', methods=['POST'])
    @require_auth
    def mark_paid(record_id):
        data = request_fields()
        record = mark_fee_paid(record_id, data.get('payment_method'), data.get('paid_date'))
        return jsonify(serialize(record))

    @api_bp.route('/fee-records/<int:record_id>/mark-pending', methods=['POST'])
    @require_auth
    def mark_pending(record_id):
        record = mark_fee_pending(record_id)
        return jsonify(serialize(record))

    @api_bp.route('/fee-records/generate', methods=['POST'])
    @require_auth
    def generate_fees():
        """Generate fee records for a month (current month by default)"""
        data = request_fields()
        default_month, default_year = current_period()
        month = data.get('month') or default_month
        year = data.get('year') or default_year
        carry_forward = data.get('carry_forward_arrears')
        if carry_forward is None:
            carry_forward = current_app.config.get('FEE_CARRY_FORWARD_ARREARS', False)

        result = run_fee_generation(month, year, carry_forward_arrears=carry_forward is True)
        return jsonify({
            'success': True,
            'created': len(result['created']),
            'skipped': result['skipped'],
            'already_present': result['already_present'],
            'records': [serialize(r) for r in result['created']],
            'message': f"Generated {len(result['created'])} fee records",
        })

    @api_bp.route('/fee-records/prune', methods=['POST'])
    @require_auth
    def prune_fees():
        """Delete fee records outside the current month; a dry run unless confirmed"""
        data = request_fields()
        result = apply_prune(confirm=data.get('confirm') is True)
        return jsonify(result)

    @api_bp.route('/fee-records/dedupe', methods=['POST'])
    @require_auth
    def dedupe_fees():
        removed = remove_duplicate_fee_records()
        return jsonify({'success': True, 'removed': removed})

    @api_bp.route('/fee-records/refresh-overdue', methods=['POST'])
    @require_auth
    def refresh_overdue():
        updated = refresh_overdue_status()
        return jsonify({'success': True, 'updated': len(updated), 'ids': updated})


def register_crud_routes(api_bp, require_auth):
    """Generic list/create/read/update/delete for every collection"""

    @api_bp.route('/<entity>', methods=['GET'])
    @require_auth
    def list_records(entity):
        store = record_store.get_store(entity)

        if store is record_store.fee_records:
            _auto_generate_fees()
            args = request.args
            records = filter_fee_records(
                store.get_all(),
                batch=args.get('batch'),
                month=month_arg(),
                year=args.get('year'),
                status=args.get('status'),
                search=args.get('search'),
            )
        elif store is record_store.salary_records and request.args.get('teacher_id'):
            records = store.get_by_teacher(request.args.get('teacher_id', type=int))
        else:
            records = store.get_all()

        return jsonify([serialize(r) for r in records])

    @api_bp.route('/expenses', methods=['GET'])
    @require_auth
    @require_fees_visible
    def list_expenses():
        """Academy expenses; hidden along with fee and income figures"""
        return jsonify([serialize(r) for r in record_store.expenses.get_all()])

    @api_bp.route('/<entity>', methods=['POST'])
    @require_auth
    def create_record(entity):
        store = record_store.get_store(entity)
        record = store.create(request_fields())
        logger.info(f"Created {store.label} id={record.id}")
        return jsonify(serialize(record)), 201

    @api_bp.route('/<entity>/<int:record_id>', methods=['GET'])
    @require_auth
    def get_record(entity, record_id):
        store = record_store.get_store(entity)
        record = store.get_by_id(record_id)
        if record is None:
            raise NotFoundError(f"{store.label} {record_id} not found")
        return jsonify(serialize(record))

    @api_bp.route('/<entity>/<int:record_id>', methods=['PUT', 'PATCH'])
    @require_auth
    def update_record(entity, record_id):
        store = record_store.get_store(entity)
        record = store.update(record_id, request_fields())
        if record is None:
            raise NotFoundError(f"{store.label} {record_id} not found")
        return jsonify(serialize(record))

    @api_bp.route('/<entity>/<int:record_id>', methods=['DELETE'])
    @require_auth
    def delete_record(entity, record_id):
        store = record_store.get_store(entity)
        if not store.delete(record_id):
            raise NotFoundError(f"{store.label} {record_id} not found")
        logger.info(f"Deleted {store.label} id={record_id}")
        return jsonify({'success': True})


def create_data_blueprint(require_auth):
    """Create the /api data blueprint"""
    api_bp = Blueprint('data', __name__)
    register_fee_routes(api_bp, require_auth)
    register_crud_routes(api_bp, require_auth)
    return api_bp
