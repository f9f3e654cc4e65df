"""
Reporting Helper Functions
Pure aggregations over in-memory records for the dashboard, reports and exports.
None of these functions touch the database, mutate their inputs or raise on bad data.
"""

from datetime import date, datetime
from dateutil.relativedelta import relativedelta
import enum

from fee_models import MONTH_NAMES
from fee_helpers import period_key, is_overdue

MONTH_LABELS = [name[:3] for name in MONTH_NAMES]


# ===== FIELD ACCESS =====

def field_value(obj, field, default=None):
    value = getattr(obj, field, default)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def amount_of(obj):
    try:
        return int(getattr(obj, 'amount', 0) or 0)
    except (TypeError, ValueError):
        return 0


def is_paid(record):
    return field_value(record, 'status') == 'paid'


def _is_active(obj):
    return field_value(obj, 'status') == 'active'


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return None


def _date_key(value):
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value) if value else ''


def _rate(collected, pending):
    total = collected + pending
    if total <= 0:
        return 0.0
    return round(collected / total * 100, 1)


# ===== FEE AGGREGATES =====

def totals(records):
    """Collected (paid) and pending (everything else) amounts"""
    collected = 0
    pending = 0
    for record in records:
        if is_paid(record):
            collected += amount_of(record)
        else:
            pending += amount_of(record)
    return {'collected': collected, 'pending': pending}


def monthly_series(records, year):
    """Collected/pending per calendar month of a year (exact month-name match)"""
    year = str(year)
    buckets = {name: {'collected': 0, 'pending': 0} for name in MONTH_NAMES}

    for record in records:
        if str(field_value(record, 'year')) != year:
            continue
        bucket = buckets.get(field_value(record, 'month'))
        if bucket is None:
            continue
        if is_paid(record):
            bucket['collected'] += amount_of(record)
        else:
            bucket['pending'] += amount_of(record)

    return [
        {'month': label, 'collected': buckets[name]['collected'], 'pending': buckets[name]['pending']}
        for name, label in zip(MONTH_NAMES, MONTH_LABELS)
    ]


def batch_breakdown(records, students, batches):
    """
    Per-batch collection figures
    Active students are counted from the roster, so a batch without fee records still
    shows its head count. Batch names found only on fee records come after the known
    batches, sorted by name.
    """
    names = []
    for batch in batches:
        name = field_value(batch, 'name')
        if name and name not in names:
            names.append(name)
    known = set(names)
    names.extend(sorted({field_value(r, 'batch') for r in records if field_value(r, 'batch') and field_value(r, 'batch') not in known}))

    rows = []
    for name in names:
        batch_records = [r for r in records if field_value(r, 'batch') == name]
        figures = totals(batch_records)
        rows.append({
            'batch': name,
            'student_count': sum(1 for s in students if field_value(s, 'batch') == name and _is_active(s)),
            'collected': figures['collected'],
            'pending': figures['pending'],
            'collection_rate': _rate(figures['collected'], figures['pending']),
        })
    return rows


def months_overdue(record, now=None):
    """Whole months between the record's month and now, floored at 0, plus 1"""
    key = period_key(field_value(record, 'month'), field_value(record, 'year'))
    if key is None:
        return 1
    now = now or date.today()
    try:
        delta = relativedelta(date(now.year, now.month, 1), date(key[0], key[1], 1))
    except ValueError:
        return 1
    return max(0, delta.years * 12 + delta.months) + 1


def defaulters(records, students, now=None, limit=10):
    """
    Unpaid fee records with the student's contact
    Sorted by months overdue, then amount (both descending), then student name.
    """
    contacts = {field_value(s, 'id'): field_value(s, 'contact') for s in students}

    rows = []
    for record in records:
        if is_paid(record):
            continue
        rows.append({
            'student_name': field_value(record, 'student_name') or 'N/A',
            'batch': field_value(record, 'batch') or 'N/A',
            'amount': amount_of(record),
            'months_overdue': months_overdue(record, now),
            'contact': contacts.get(field_value(record, 'student_id')) or 'N/A',
        })

    rows.sort(key=lambda row: (-row['months_overdue'], -row['amount'], row['student_name']))
    if limit is None:
        return rows
    return rows[:limit]


def _by_batch(buckets):
    return [
        {'batch': name, 'amount': bucket['amount'], 'count': bucket['count']}
        for name, bucket in sorted(buckets.items())
    ]


def overdue_breakdown(records, now=None):
    """Unpaid amounts split into earlier months and the current month"""
    now = now or date.today()
    current = (now.year, now.month)
    previous_buckets = {}
    current_buckets = {}

    for record in records:
        if is_paid(record):
            continue
        key = period_key(field_value(record, 'month'), field_value(record, 'year'))
        if key is None:
            continue
        if key < current:
            buckets = previous_buckets
        elif key == current:
            buckets = current_buckets
        else:
            continue
        bucket = buckets.setdefault(field_value(record, 'batch') or 'N/A', {'amount': 0, 'count': 0})
        bucket['amount'] += amount_of(record)
        bucket['count'] += 1

    return {
        'previous_overdue_amount': sum(b['amount'] for b in previous_buckets.values()),
        'current_month_overdue_amount': sum(b['amount'] for b in current_buckets.values()),
        'previous_by_batch': _by_batch(previous_buckets),
        'current_by_batch': _by_batch(current_buckets),
    }


def recent_payments(records, limit=5):
    """Paid records, newest payment first"""
    paid = [r for r in records if is_paid(r)]
    paid = sorted(paid, key=lambda r: _date_key(getattr(r, 'paid_date', None)), reverse=True)
    return paid[:limit]


def upcoming_dues(records, today=None):
    """Unpaid totals per batch; the due date is today as no per-record due date exists"""
    today = today or date.today()
    buckets = {}
    for record in records:
        if is_paid(record):
            continue
        bucket = buckets.setdefault(field_value(record, 'batch') or 'N/A', {'student_count': 0, 'amount': 0})
        bucket['student_count'] += 1
        bucket['amount'] += amount_of(record)

    return [
        {'batch': name, 'student_count': bucket['student_count'], 'amount': bucket['amount'],
         'due_date': today.isoformat()}
        for name, bucket in buckets.items()
    ]


def filter_fee_records(records, batch=None, month=None, year=None, status=None, search=None, today=None):
    """Fee list filter; status 'overdue' means unpaid from an earlier month"""
    search = (search or '').strip().lower()
    selected = []
    for record in records:
        if batch and field_value(record, 'batch') != batch:
            continue
        if month and field_value(record, 'month') != month:
            continue
        if year and str(field_value(record, 'year')) != str(year):
            continue
        if status:
            if status == 'overdue':
                if not is_overdue(record, today):
                    continue
            elif field_value(record, 'status') != status:
                continue
        if search:
            name = (field_value(record, 'student_name') or '').lower()
            batch_name = (field_value(record, 'batch') or '').lower()
            if search not in name and search not in batch_name:
                continue
        selected.append(record)
    return selected


def period_summary(records):
    """Head counts and amounts for a set of fee records"""
    figures = totals(records)
    total_count = len(records)
    paid_count = sum(1 for r in records if is_paid(r))
    return {
        'total_count': total_count,
        'paid_count': paid_count,
        'pending_count': total_count - paid_count,
        'total_amount': figures['collected'] + figures['pending'],
        'paid_amount': figures['collected'],
        'pending_amount': figures['pending'],
        'collection_rate': round(paid_count / total_count * 100, 1) if total_count else 0.0,
    }


# ===== DASHBOARD =====

def dashboard_stats(students, batches, records, expenses, include_fees=True):
    """Headline counts; revenue, pending fees and expenses only when include_fees"""
    stats = {
        'total_students': sum(1 for s in students if _is_active(s)),
        'total_batches': sum(1 for b in batches if _is_active(b)),
    }
    if include_fees:
        stats['total_expenses'] = sum(amount_of(e) for e in expenses)
        figures = totals(records)
        stats['total_revenue'] = figures['collected']
        stats['pending_fees'] = figures['pending']
    return stats


def key_metrics(records, students):
    figures = totals(records)
    return {
        'total_revenue': figures['collected'],
        'total_pending': figures['pending'],
        'total_students': sum(1 for s in students if _is_active(s)),
        'defaulters_count': sum(1 for r in records if not is_paid(r)),
        'collection_rate': _rate(figures['collected'], figures['pending']),
    }


# ===== SALARIES AND EXPENSES =====

def salary_summary(teachers, salary_records, month, year):
    """What each teacher has been paid for a month against their monthly salary"""
    year = str(year)
    rows = []
    for teacher in teachers:
        teacher_id = field_value(teacher, 'id')
        payments = [
            r for r in salary_records
            if field_value(r, 'teacher_id') == teacher_id
            and field_value(r, 'month') == month
            and str(field_value(r, 'year')) == year
        ]
        try:
            monthly_salary = int(field_value(teacher, 'salary') or 0)
        except (TypeError, ValueError):
            monthly_salary = 0
        total_paid = sum(amount_of(r) for r in payments)
        rows.append({
            'teacher_id': teacher_id,
            'teacher_name': field_value(teacher, 'name') or 'N/A',
            'monthly_salary': monthly_salary,
            'total_paid': total_paid,
            'remaining': monthly_salary - total_paid,
            'record_count': len(payments),
            'fully_paid': total_paid >= monthly_salary,
        })

    return {
        'month': month,
        'year': year,
        'teachers': rows,
        'total_salary_budget': sum(r['monthly_salary'] for r in rows),
        'total_paid': sum(r['total_paid'] for r in rows),
        'total_pending': sum(max(0, r['remaining']) for r in rows),
    }


def expense_summary(expenses, today=None):
    """All-time and current-month totals for a ledger"""
    today = today or date.today()
    this_month = 0
    for expense in expenses:
        spent_on = _as_date(getattr(expense, 'date', None))
        if spent_on and spent_on.year == today.year and spent_on.month == today.month:
            this_month += amount_of(expense)
    return {
        'total': sum(amount_of(e) for e in expenses),
        'this_month': this_month,
        'count': len(expenses),
    }
