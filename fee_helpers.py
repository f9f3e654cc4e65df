"""
Fee Management Helper Functions
Contains the monthly fee generation, status transitions and reconciliation logic
"""

from datetime import date
import logging

from models import StatusEnum
from fee_models import MONTH_NAMES, FeeRecord, FeeStatusEnum, PaymentMethodEnum
from validators import RecordValidator
import record_store
from record_store import DuplicateRecordError, NotFoundError

logger = logging.getLogger(__name__)


# ===== PERIOD HELPERS =====

def current_period(today: date = None) -> tuple:
    """(month name, 4-digit year string) for today"""
    today = today or date.today()
    return MONTH_NAMES[today.month - 1], str(today.year)


def month_number(month: str) -> int:
    """1-12 for an exact month name, None otherwise"""
    try:
        return MONTH_NAMES.index(month) + 1
    except ValueError:
        return None


def period_key(month, year):
    """Sortable (year, month) tuple, or None when the period cannot be parsed"""
    number = month_number(month)
    try:
        year_number = int(year)
    except (TypeError, ValueError):
        return None
    if number is None:
        return None
    return (year_number, number)


def is_overdue(record: FeeRecord, today: date = None) -> bool:
    """Unpaid and from a month before the current one"""
    if record.status == FeeStatusEnum.PAID:
        return False
    key = period_key(record.month, record.year)
    if key is None:
        return False
    today = today or date.today()
    return key < (today.year, today.month)


# ===== FEE GENERATION =====

def generate_fees_for_month(month: str, year: str, active_students: list, existing_records: list,
                            carry_forward_arrears: bool = False) -> list:
    """
    Work out the fee records that must be created for a month
    Args:
        month: Month name
        year: 4-digit year
        active_students: Student roster; inactive students are ignored
        existing_records: Fee records already stored
        carry_forward_arrears: Add one monthly fee per earlier unpaid month
    Returns:
        list of field dicts, one per active student without a record for the month
    """
    month = RecordValidator.validate_month(month)
    year = RecordValidator.validate_year(year)
    target = period_key(month, year)

    existing_keys = {(r.student_id, r.month, r.year) for r in existing_records}
    to_create = []

    for student in active_students:
        if student.status != StatusEnum.ACTIVE:
            continue

        key = (student.id, month, year)
        if key in existing_keys:
            continue
        existing_keys.add(key)

        amount = student.fees
        if carry_forward_arrears:
            arrears = [
                r for r in existing_records
                if r.student_id == student.id
                and r.status != FeeStatusEnum.PAID
                and period_key(r.month, r.year) is not None
                and period_key(r.month, r.year) < target
            ]
            amount += len(arrears) * student.fees

        to_create.append({
            'student_id': student.id,
            'student_name': student.name,
            'batch': student.batch,
            'amount': amount,
            'month': month,
            'year': year,
            'status': FeeStatusEnum.PENDING,
            'paid_date': None,
            'payment_method': None,
        })

    return to_create


def create_fee_records(records: list, store=None) -> dict:
    """
    Persist generated fee records one at a time
    A duplicate for one student is skipped; a store outage aborts the pass.
    Returns:
        dict with the created records and the number skipped as duplicates
    """
    store = store or record_store.fee_records
    created = []
    skipped = 0

    for fields in records:
        try:
            created.append(store.create(fields))
        except DuplicateRecordError as e:
            skipped += 1
            logger.info(f"Skipped duplicate fee record: {e}")

    return {'created': created, 'skipped': skipped}


def run_fee_generation(month: str, year: str, carry_forward_arrears: bool = False,
                       student_store=None, fee_store=None) -> dict:
    """Load the roster and existing records, then create the missing fee records"""
    student_store = student_store or record_store.students
    fee_store = fee_store or record_store.fee_records

    month = RecordValidator.validate_month(month)
    year = RecordValidator.validate_year(year)

    active_students = student_store.get_all(status=StatusEnum.ACTIVE)
    if carry_forward_arrears:
        existing = fee_store.get_all()
    else:
        existing = fee_store.get_for_period(month, year)

    pending = generate_fees_for_month(month, year, active_students, existing, carry_forward_arrears)
    result = create_fee_records(pending, fee_store)
    result['already_present'] = len(active_students) - len(pending)

    logger.info(f"Fee generation for {month} {year}: {len(result['created'])} created, "
                f"{result['skipped']} duplicates skipped, {result['already_present']} already present")
    return result


def ensure_current_month_fees(today=None, carry_forward_arrears=False, student_store=None, fee_store=None):
    """
    Generate the current month's fees when none exist yet
    Returns:
        generation result, or None when the month already has fee records
    """
    fee_store = fee_store or record_store.fee_records
    month, year = current_period(today)

    if fee_store.count(month=month, year=year) > 0:
        return None

    return run_fee_generation(month, year, carry_forward_arrears, student_store, fee_store)


# ===== STATUS TRANSITIONS =====

def mark_fee_paid(record_id: int, payment_method=PaymentMethodEnum.CASH, paid_date=None, store=None) -> FeeRecord:
    """Mark a fee record paid; amount is left untouched"""
    store = store or record_store.fee_records
    method = RecordValidator.validate_choice(PaymentMethodEnum, payment_method or PaymentMethodEnum.CASH,
                                             'payment_method')
    paid_on = RecordValidator.validate_date(paid_date, 'paid_date') if paid_date else date.today()

    record = store.update(record_id, {
        'status': FeeStatusEnum.PAID,
        'paid_date': paid_on,
        'payment_method': method,
    })
    if record is None:
        raise NotFoundError(f"Fee record {record_id} not found")
    logger.info(f"Fee record {record_id} marked paid ({method.value})")
    return record


def mark_fee_pending(record_id: int, store=None) -> FeeRecord:
    """Return a fee record to pending and clear its payment details"""
    store = store or record_store.fee_records
    record = store.update(record_id, {
        'status': FeeStatusEnum.PENDING,
        'paid_date': None,
        'payment_method': None,
    })
    if record is None:
        raise NotFoundError(f"Fee record {record_id} not found")
    logger.info(f"Fee record {record_id} marked pending")
    return record


def find_overdue_candidates(records, today=None):
    """Pending records from months before the current one"""
    return [r for r in records if r.status == FeeStatusEnum.PENDING and is_overdue(r, today)]


def refresh_overdue_status(today: date = None, store=None) -> list:
    """Move pending records of past months to overdue; returns the ids changed"""
    store = store or record_store.fee_records
    candidates = find_overdue_candidates(store.get_all(status=FeeStatusEnum.PENDING), today)

    updated = []
    for record in candidates:
        if store.update(record.id, {'status': FeeStatusEnum.OVERDUE}) is not None:
            updated.append(record.id)

    if updated:
        logger.info(f"Marked {len(updated)} fee records overdue")
    return updated


# ===== RECONCILIATION =====

def prune_invalid(current_month: str, current_year: str, records: list) -> dict:
    """
    Split fee records into those of the operating month and the rest
    Returns:
        {'kept': [...], 'removed_ids': [...]}
    """
    kept = []
    removed_ids = []
    for record in records:
        if record.month == current_month and record.year == current_year:
            kept.append(record)
        else:
            removed_ids.append(record.id)
    return {'kept': kept, 'removed_ids': removed_ids}


def apply_prune(confirm: bool = False, today: date = None, store=None) -> dict:
    """
    Delete every fee record outside the current month
    Nothing is deleted unless confirm is True; the plan is returned either way.
    """
    store = store or record_store.fee_records
    month, year = current_period(today)
    plan = prune_invalid(month, year, store.get_all())

    result = {
        'month': month,
        'year': year,
        'removed_ids': plan['removed_ids'],
        'removed_count': 0,
        'kept_count': len(plan['kept']),
        'applied': False,
    }
    if not confirm:
        return result

    result['removed_count'] = store.delete_many(plan['removed_ids'])
    result['applied'] = True
    logger.warning(f"Pruned {result['removed_count']} fee records outside {month} {year}")
    return result


def find_duplicate_fee_records(records):
    """Ids of every record but the lowest-id one per (student, month, year)"""
    groups = {}
    for record in records:
        groups.setdefault((record.student_id, record.month, record.year), []).append(record)

    duplicate_ids = []
    for group in groups.values():
        if len(group) > 1:
            ordered = sorted(group, key=lambda r: r.id)
            duplicate_ids.extend(r.id for r in ordered[1:])
    return sorted(duplicate_ids)


def remove_duplicate_fee_records(store=None) -> int:
    """Delete duplicate fee records; returns the number removed"""
    store = store or record_store.fee_records
    duplicate_ids = find_duplicate_fee_records(store.get_all())
    removed = store.delete_many(duplicate_ids)
    if removed:
        logger.warning(f"Removed {removed} duplicate fee records")
    return removed

