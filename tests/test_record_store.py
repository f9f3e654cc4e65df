from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

import record_store
from record_store import DuplicateRecordError, NotFoundError, StoreUnavailableError
from validators import ValidationError
from models import StatusEnum
from fee_models import FeeStatusEnum, PaymentMethodEnum

from conftest import add_student, add_fee


def test_create_and_get_student(app):
    created = add_student(email='Asha@Example.com')

    assert created.id is not None
    loaded = record_store.students.get_by_id(created.id)
    assert loaded.name == 'Asha'
    assert loaded.fees == 800
    assert loaded.status == StatusEnum.ACTIVE
    assert loaded.join_date == date(2025, 1, 10)
    assert loaded.email == 'asha@example.com'


def test_get_all_filters_and_orders_by_id(app):
    add_student(name='A')
    add_student(name='B', status='inactive')
    add_student(name='C')

    assert [s.name for s in record_store.students.get_all()] == ['A', 'B', 'C']
    assert [s.name for s in record_store.students.get_all(status=StatusEnum.ACTIVE)] == ['A', 'C']
    assert record_store.students.count(status=StatusEnum.INACTIVE) == 1


def test_missing_required_field_is_rejected(app):
    with pytest.raises(ValidationError) as exc:
        record_store.students.create({'name': 'Asha', 'batch': 'Morning', 'fees': 800, 'join_date': '2025-01-01'})
    assert exc.value.field == 'address'


@pytest.mark.parametrize('amount', [-1, 10.5, 'ten', True])
def test_invalid_amount_is_rejected(app, amount):
    with pytest.raises(ValidationError):
        add_student(fees=amount)


@pytest.mark.parametrize('amount', [2**31, 10**20, '99999999999999999999'])
def test_amount_beyond_integer_column_is_rejected(app, amount):
    with pytest.raises(ValidationError) as exc:
        add_student(fees=amount)
    assert exc.value.field == 'fees'
    assert exc.value.message == 'is too large'


def test_largest_storable_amount_is_accepted(app):
    assert add_student(fees=2**31 - 1).fees == 2**31 - 1


def test_unknown_fields_are_ignored(app):
    created = add_student(nickname='Ash')
    assert not hasattr(created, 'nickname')


def test_update_applies_only_supplied_fields(app):
    created = add_student()

    updated = record_store.students.update(created.id, {'fees': 900})

    assert updated.fees == 900
    assert updated.name == 'Asha'
    assert record_store.students.get_by_id(created.id).fees == 900


def test_update_unknown_id_returns_none(app):
    assert record_store.students.update(999, {'fees': 900}) is None


def test_delete(app):
    created = add_student()

    assert record_store.students.delete(created.id) is True
    assert record_store.students.get_by_id(created.id) is None
    assert record_store.students.delete(created.id) is False


def test_delete_many_counts_removed_records(app):
    ids = [add_student(name=n).id for n in ('A', 'B', 'C')]

    assert record_store.students.delete_many(ids[:2] + [999]) == 2
    assert record_store.students.delete_many([]) == 0
    assert [s.name for s in record_store.students.get_all()] == ['C']


def test_batch_name_is_unique(app):
    fields = {'name': 'Morning', 'teacher': 'Ravi', 'fees': 800, 'schedule': 'Mon-Fri 7am'}
    record_store.batches.create(fields)

    with pytest.raises(DuplicateRecordError):
        record_store.batches.create(fields)


def test_fee_record_unique_per_student_and_month(app):
    add_fee(student_id=1, month='July', year='2025')

    with pytest.raises(DuplicateRecordError) as exc:
        add_fee(student_id=1, month='July', year='2025', amount=900)
    assert 'July 2025' in str(exc.value)
    assert isinstance(exc.value.__cause__, DuplicateRecordError)

    add_fee(student_id=1, month='August', year='2025')
    assert record_store.fee_records.count() == 2


def test_fee_record_month_and_year_are_normalized(app):
    record = add_fee(month='july', year=2025)
    assert record.month == 'July'
    assert record.year == '2025'


@pytest.mark.parametrize('month, year', [('Jul', '2025'), ('July', '25'), ('Julember', '2025')])
def test_fee_record_rejects_bad_period(app, month, year):
    with pytest.raises(ValidationError):
        add_fee(month=month, year=year)


def test_fee_record_lookups(app):
    add_fee(student_id=1, month='July')
    add_fee(student_id=1, month='August')
    add_fee(student_id=2, month='July')

    assert len(record_store.fee_records.get_by_student(1)) == 2
    assert {r.student_id for r in record_store.fee_records.get_for_period('july', '2025')} == {1, 2}


def test_salary_records_refuse_card_payments(app):
    fields = {
        'teacher_id': 1, 'teacher_name': 'Ravi', 'amount': 5000, 'month': 'July', 'year': '2025',
        'payment_date': '2025-07-05', 'payment_method': 'Card',
    }
    with pytest.raises(ValidationError):
        record_store.salary_records.create(fields)

    fields['payment_method'] = 'UPI'
    record = record_store.salary_records.create(fields)
    assert record.payment_method == PaymentMethodEnum.UPI
    assert record_store.salary_records.get_by_teacher(1) != []


def test_fee_status_accepts_enum_values(app):
    record = add_fee(status='paid', paid_date='2025-07-03', payment_method='Bank Transfer')
    assert record.status == FeeStatusEnum.PAID
    assert record.payment_method == PaymentMethodEnum.BANK_TRANSFER
    assert record.paid_date == date(2025, 7, 3)


def test_expense_defaults_and_to_dict(app):
    expense = record_store.personal_expenses.create({'name': 'Tea', 'description': 'Staff tea', 'amount': 120})

    data = expense.to_dict()
    assert data['place'] == ''
    assert data['date'] == date.today().isoformat()
    assert data['amount'] == 120


def test_get_store_unknown_entity():
    assert record_store.get_store('fee-records') is record_store.fee_records
    with pytest.raises(NotFoundError):
        record_store.get_store('parents')


def test_operational_errors_surface_as_store_unavailable(app, monkeypatch):
    class BrokenSession:
        def query(self, *args, **kwargs):
            raise OperationalError('SELECT 1', {}, Exception('server has gone away'))

        def rollback(self):
            pass

        def close(self):
            pass

    monkeypatch.setattr(record_store, 'get_session', lambda: BrokenSession())

    with pytest.raises(StoreUnavailableError):
        record_store.students.get_all()


def test_paid_fee_record_gets_payment_details(app):
    record = add_fee(status='paid')
    assert record.paid_date == date.today()
    assert record.payment_method == PaymentMethodEnum.CASH


def test_fee_status_update_keeps_payment_details_consistent(app):
    record = add_fee()

    paid = record_store.fee_records.update(record.id, {'status': 'paid', 'payment_method': 'UPI'})
    assert paid.paid_date == date.today()
    assert paid.payment_method == PaymentMethodEnum.UPI

    again = record_store.fee_records.update(record.id, {'status': 'paid'})
    assert again.payment_method == PaymentMethodEnum.UPI

    pending = record_store.fee_records.update(record.id, {'status': 'pending'})
    assert pending.paid_date is None
    assert pending.payment_method is None

    assert record_store.fee_records.update(999, {'status': 'paid'}) is None
