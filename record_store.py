"""
Record Store
Generic get-all/get-by-id/create/update/delete access for every academy entity
"""

from contextlib import contextmanager
from datetime import date
from sqlalchemy.exc import IntegrityError, OperationalError, InterfaceError
import logging

from db_single import get_session
from models import Student, Batch, Teacher
from fee_models import FeeRecord, SalaryRecord, FeeStatusEnum, PaymentMethodEnum
from expense_models import Expense, PersonalExpense
from validators import RecordValidator, is_blank

logger = logging.getLogger(__name__)


class DuplicateRecordError(Exception):
    """A unique constraint rejected the write"""


class NotFoundError(Exception):
    """No record with the requested id"""


class StoreUnavailableError(Exception):
    """The database could not be reached"""


class RecordStore:
    """Persisted collection of one entity type"""

    def __init__(self, model, label=None):
        self.model = model
        self.label = label or model.__name__

    @contextmanager
    def _session(self):
        session = get_session()
        try:
            yield session
        except IntegrityError as e:
            session.rollback()
            logger.info(f"{self.label} write rejected by a unique constraint: {e.orig}")
            raise DuplicateRecordError(f"{self.label} already exists") from e
        except (OperationalError, InterfaceError) as e:
            session.rollback()
            logger.error(f"Database unavailable while accessing {self.label}: {e}")
            raise StoreUnavailableError("Database is unavailable") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_all(self, **filters):
        """All records, optionally filtered by exact column values"""
        with self._session() as session:
            return session.query(self.model).filter_by(**filters).order_by(self.model.id).all()

    def get_by_id(self, record_id):
        with self._session() as session:
            return session.get(self.model, record_id)

    def create(self, fields):
        """Validate and insert a new record"""
        values = RecordValidator.clean_record(self.model, fields)
        with self._session() as session:
            record = self.model(**values)
            session.add(record)
            session.commit()
            logger.debug(f"Created {self.label} id={record.id}")
            return record

    def update(self, record_id, partial):
        """Apply the supplied fields; returns None when the id is unknown"""
        values = RecordValidator.clean_record(self.model, partial, partial=True)
        with self._session() as session:
            record = session.get(self.model, record_id)
            if record is None:
                return None
            for key, value in values.items():
                setattr(record, key, value)
            session.commit()
            return record

    def delete(self, record_id):
        """Delete a record; returns False when the id is unknown"""
        with self._session() as session:
            record = session.get(self.model, record_id)
            if record is None:
                return False
            session.delete(record)
            session.commit()
            return True

    def delete_many(self, record_ids):
        """Delete every listed record; returns the number removed"""
        record_ids = list(record_ids)
        if not record_ids:
            return 0
        with self._session() as session:
            count = session.query(self.model).filter(
                self.model.id.in_(record_ids)
            ).delete(synchronize_session=False)
            session.commit()
            return count

    def count(self, **filters):
        with self._session() as session:
            return session.query(self.model).filter_by(**filters).count()


class FeeRecordStore(RecordStore):
    """Fee records; (student_id, month, year) is unique"""

    def __init__(self):
        super().__init__(FeeRecord, label="Fee record")

    def create(self, fields):
        try:
            return super().create(self._with_payment_details(fields))
        except DuplicateRecordError as e:
            raise DuplicateRecordError(
                f"Fee record already exists for student {fields.get('student_id')} "
                f"in {fields.get('month')} {fields.get('year')}"
            ) from e

    def update(self, record_id, partial):
        existing = None
        if partial and not is_blank(partial.get('status')):
            existing = self.get_by_id(record_id)
            if existing is None:
                return None
        return super().update(record_id, self._with_payment_details(partial, existing))

    @staticmethod
    def _with_payment_details(fields, existing=None):
        """A paid record always carries a paid date and a payment method; other statuses carry neither"""
        if not fields or is_blank(fields.get('status')):
            return fields
        status = RecordValidator.validate_choice(FeeStatusEnum, fields['status'], 'status')
        fields = dict(fields, status=status)
        if status == FeeStatusEnum.PAID:
            if is_blank(fields.get('paid_date')):
                fields['paid_date'] = getattr(existing, 'paid_date', None) or date.today()
            if is_blank(fields.get('payment_method')):
                fields['payment_method'] = getattr(existing, 'payment_method', None) or PaymentMethodEnum.CASH
        else:
            fields['paid_date'] = None
            fields['payment_method'] = None
        return fields

    def get_by_student(self, student_id):
        return self.get_all(student_id=student_id)

    def get_for_period(self, month, year):
        month = RecordValidator.validate_month(month)
        year = RecordValidator.validate_year(year)
        return self.get_all(month=month, year=year)


class SalaryRecordStore(RecordStore):

    def __init__(self):
        super().__init__(SalaryRecord, label="Salary record")

    def get_by_teacher(self, teacher_id):
        return self.get_all(teacher_id=teacher_id)


students = RecordStore(Student)
batches = RecordStore(Batch)
teachers = RecordStore(Teacher)
fee_records = FeeRecordStore()
salary_records = SalaryRecordStore()
expenses = RecordStore(Expense)
personal_expenses = RecordStore(PersonalExpense, label="Personal expense")

# URL segment -> store
STORES = {
    'students': students,
    'batches': batches,
    'teachers': teachers,
    'fee-records': fee_records,
    'salary-records': salary_records,
    'expenses': expenses,
    'personal-expenses': personal_expenses,
}


def get_store(entity):
    store = STORES.get(entity)
    if store is None:
        raise NotFoundError(f"Unknown collection '{entity}'")
    return store
