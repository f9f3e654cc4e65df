"""
Fee Management Models for the Academy Fee Desk
This file contains the monthly fee record and teacher salary payment models
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Enum, Index, UniqueConstraint
from datetime import datetime
from models import Base, SerializerMixin
import enum


MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


# ===== ENUMS =====

class FeeStatusEnum(enum.Enum):
    PAID = "paid"
    PENDING = "pending"
    OVERDUE = "overdue"


class PaymentMethodEnum(enum.Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    UPI = "UPI"
    CARD = "Card"


class SalaryTypeEnum(enum.Enum):
    FULL = "full"
    PARTIAL = "partial"


# Card payments are accepted for fees only
SALARY_PAYMENT_METHODS = (
    PaymentMethodEnum.CASH,
    PaymentMethodEnum.BANK_TRANSFER,
    PaymentMethodEnum.CHEQUE,
    PaymentMethodEnum.UPI,
)


# ===== FEE RECORD MODEL =====

class FeeRecord(Base, SerializerMixin):
    """One student's fee obligation for one calendar month"""
    __tablename__ = 'fee_records'
    __table_args__ = (
        UniqueConstraint('student_id', 'month', 'year', name='unique_student_month_year'),
        Index('idx_fee_student', 'student_id'),
        Index('idx_fee_student_name', 'student_name'),
        Index('idx_fee_batch', 'batch'),
        Index('idx_fee_period', 'month', 'year'),
        Index('idx_fee_status', 'status'),
        Index('idx_fee_paid_date', 'paid_date'),
        Index('idx_fee_batch_period', 'batch', 'month', 'year'),
    )

    id = Column(Integer, primary_key=True)
    # Weak references: copied from the student at creation time
    student_id = Column(Integer, nullable=False)
    student_name = Column(String(100), nullable=False)
    batch = Column(String(100), nullable=False)

    amount = Column(Integer, nullable=False)
    month = Column(String(20), nullable=False)  # Full English month name
    year = Column(String(4), nullable=False)
    status = Column(Enum(FeeStatusEnum, values_callable=lambda obj: [e.value for e in obj]), default=FeeStatusEnum.PENDING)
    paid_date = Column(Date, nullable=True)
    payment_method = Column(Enum(PaymentMethodEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        status = self.status.value if self.status else None
        return f"<FeeRecord student_id={self.student_id} {self.month} {self.year} status={status}>"


# ===== SALARY RECORD MODEL =====

class SalaryRecord(Base, SerializerMixin):
    """A salary payment to a teacher; several partial payments per month are summed"""
    __tablename__ = 'salary_records'
    __table_args__ = (
        Index('idx_salary_teacher', 'teacher_id'),
        Index('idx_salary_teacher_name', 'teacher_name'),
        Index('idx_salary_period', 'month', 'year'),
        Index('idx_salary_payment_date', 'payment_date'),
        Index('idx_salary_type', 'type'),
        Index('idx_salary_teacher_period', 'teacher_id', 'month', 'year'),
    )

    id = Column(Integer, primary_key=True)
    teacher_id = Column(Integer, nullable=False)
    teacher_name = Column(String(100), nullable=False)

    amount = Column(Integer, nullable=False)
    month = Column(String(20), nullable=False)
    year = Column(String(4), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_method = Column(Enum(PaymentMethodEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    notes = Column(Text, nullable=True)
    type = Column(Enum(SalaryTypeEnum, values_callable=lambda obj: [e.value for e in obj]), default=SalaryTypeEnum.PARTIAL)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<SalaryRecord teacher_id={self.teacher_id} amount={self.amount} {self.month} {self.year}>"
