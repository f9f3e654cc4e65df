"""
Expense Management Models
Plain ledger rows for academy expenses and the owner's personal expenses
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Date, Index
from datetime import datetime, date
from models import Base, SerializerMixin


# ===== EXPENSE MODEL =====
class Expense(Base, SerializerMixin):
    __tablename__ = 'expenses'
    __table_args__ = (
        Index('idx_expense_date', 'date'),
        Index('idx_expense_amount', 'amount'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Integer, nullable=False)
    date = Column(Date, nullable=False, default=date.today)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Expense {self.name} - {self.amount}>'


# ===== PERSONAL EXPENSE MODEL =====
class PersonalExpense(Base, SerializerMixin):
    __tablename__ = 'personal_expenses'
    __table_args__ = (
        Index('idx_personal_expense_date', 'date'),
        Index('idx_personal_expense_amount', 'amount'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Integer, nullable=False)
    date = Column(Date, nullable=False, default=date.today)
    place = Column(String(200), default='')

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<PersonalExpense {self.name} - {self.amount}>'
