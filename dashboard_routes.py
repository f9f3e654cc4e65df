"""
Dashboard and Report Routes
Dashboard cards, fee/salary/expense reports and downloadable exports
"""

from flask import Blueprint, request, jsonify, send_file, current_app
from datetime import date
import io
import logging

import record_store
from auth_helpers import require_auth, require_fees_visible, fees_visible
from fee_helpers import current_period
from validators import RecordValidator
from report_helpers import (
    totals, monthly_series, batch_breakdown, defaulters, overdue_breakdown,
    recent_payments, upcoming_dues, dashboard_stats, key_metrics, salary_summary,
    expense_summary, filter_fee_records
)
from report_export import (
    fee_records_csv, batch_breakdown_csv, defaulters_csv, detailed_fee_report, fee_report_pdf
)

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint('dashboard', __name__)


def _selected_period():
    """month/year query args, normalized and defaulting to the current month"""
    month, year = current_period()
    month = RecordValidator.validate_month(request.args.get('month') or month)
    year = RecordValidator.validate_year(request.args.get('year') or year)
    return month, year


def _period_records():
    month, year = _selected_period()
    records = filter_fee_records(
        record_store.fee_records.get_all(),
        batch=request.args.get('batch'),
        month=month,
        year=year,
        status=request.args.get('status'),
    )
    return records, f"{month} {year}"


def _download(content, filename, mimetype):
    if isinstance(content, str):
        content = io.BytesIO(content.encode('utf-8'))
    return send_file(content, as_attachment=True, download_name=filename, mimetype=mimetype)


# ===== DASHBOARD =====

@dashboard_bp.route('/dashboard/stats')
@require_auth
def get_dashboard_stats():
    """Headline counts; fee figures are left out when hidden"""
    stats = dashboard_stats(
        record_store.students.get_all(),
        record_store.batches.get_all(),
        record_store.fee_records.get_all(),
        record_store.expenses.get_all(),
        include_fees=fees_visible(),
    )
    return jsonify(stats)


@dashboard_bp.route('/dashboard/recent-payments')
@require_auth
@require_fees_visible
def get_recent_payments():
    limit = request.args.get('limit', 5, type=int)
    records = recent_payments(record_store.fee_records.get_all(), limit=limit)
    return jsonify([r.to_dict() for r in records])


@dashboard_bp.route('/dashboard/upcoming-dues')
@require_auth
@require_fees_visible
def get_upcoming_dues():
    return jsonify(upcoming_dues(record_store.fee_records.get_all()))


# ===== REPORTS =====

@dashboard_bp.route('/reports/summary')
@require_auth
@require_fees_visible
def report_summary():
    records = record_store.fee_records.get_all()
    metrics = key_metrics(records, record_store.students.get_all())
    metrics.update(totals(records))
    return jsonify(metrics)


@dashboard_bp.route('/reports/monthly')
@require_auth
@require_fees_visible
def report_monthly():
    year = request.args.get('year') or str(date.today().year)
    return jsonify({
        'year': year,
        'months': monthly_series(record_store.fee_records.get_all(), year),
    })


@dashboard_bp.route('/reports/batches')
@require_auth
@require_fees_visible
def report_batches():
    return jsonify(batch_breakdown(
        record_store.fee_records.get_all(),
        record_store.students.get_all(),
        record_store.batches.get_all(),
    ))


@dashboard_bp.route('/reports/defaulters')
@require_auth
@require_fees_visible
def report_defaulters():
    limit = request.args.get('limit', 10, type=int)
    return jsonify(defaulters(
        record_store.fee_records.get_all(),
        record_store.students.get_all(),
        limit=limit,
    ))


@dashboard_bp.route('/reports/overdue')
@require_auth
@require_fees_visible
def report_overdue():
    return jsonify(overdue_breakdown(record_store.fee_records.get_all()))


@dashboard_bp.route('/reports/salaries')
@require_auth
@require_fees_visible
def report_salaries():
    month, year = _selected_period()
    return jsonify(salary_summary(
        record_store.teachers.get_all(),
        record_store.salary_records.get_all(),
        month,
        year,
    ))


@dashboard_bp.route('/reports/expenses')
@require_auth
@require_fees_visible
def report_expenses():
    return jsonify({
        'expenses': expense_summary(record_store.expenses.get_all()),
        'personal_expenses': expense_summary(record_store.personal_expenses.get_all()),
    })


# ===== EXPORTS =====

@dashboard_bp.route('/reports/export/fees.txt')
@require_auth
@require_fees_visible
def export_fee_report_text():
    records, period_label = _period_records()
    content = detailed_fee_report(records, period_label)
    return _download(content, f"detailed_fee_report_{period_label.replace(' ', '_')}.txt", 'text/plain')


@dashboard_bp.route('/reports/export/fees.pdf')
@require_auth
@require_fees_visible
def export_fee_report_pdf():
    records, period_label = _period_records()
    buffer = fee_report_pdf(
        records,
        period_label,
        academy_name=current_app.config.get('ACADEMY_NAME', 'Academy'),
        students=record_store.students.get_all(),
        batches=record_store.batches.get_all(),
    )
    return _download(buffer, f"fee_report_{period_label.replace(' ', '_')}.pdf", 'application/pdf')


@dashboard_bp.route('/reports/export/<kind>.csv')
@require_auth
@require_fees_visible
def export_csv(kind):
    """fees, batches or defaulters as CSV"""
    if kind == 'fees':
        records, period_label = _period_records()
        return _download(fee_records_csv(records), f"fee_report_{period_label.replace(' ', '_')}.csv", 'text/csv')

    if kind == 'batches':
        rows = batch_breakdown(
            record_store.fee_records.get_all(),
            record_store.students.get_all(),
            record_store.batches.get_all(),
        )
        return _download(batch_breakdown_csv(rows), 'batch_report.csv', 'text/csv')

    if kind == 'defaulters':
        rows = defaulters(record_store.fee_records.get_all(), record_store.students.get_all(), limit=None)
        return _download(defaulters_csv(rows), 'defaulters_report.csv', 'text/csv')

    return jsonify({'error': f"Unknown export '{kind}'"}), 404
