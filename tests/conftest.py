import os
import sys
from datetime import date

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from main import create_app
import record_store
from models import Student, StatusEnum
from fee_models import FeeRecord, FeeStatusEnum


@pytest.fixture
def app():
    """Fresh app over an empty in-memory database"""
    app = create_app('testing')
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def token(app):
    c = app.test_client()
    r = c.post('/api/auth/login', json={'username': 'admin', 'password': 'admin-pass'})
    assert r.status_code == 200
    return r.get_json()['token']


@pytest.fixture
def auth_headers(token):
    return {'Authorization': f'Bearer {token}'}


def add_student(name='Asha', batch='Morning', fees=800, status='active', **extra):
    fields = {
        'name': name,
        'batch': batch,
        'fees': fees,
        'address': '12 Lake Road',
        'join_date': '2025-01-10',
        'status': status,
    }
    fields.update(extra)
    return record_store.students.create(fields)


def add_fee(student_id=1, student_name='Asha', batch='Morning', amount=800, month='July', year='2025',
            status='pending', **extra):
    fields = {
        'student_id': student_id,
        'student_name': student_name,
        'batch': batch,
        'amount': amount,
        'month': month,
        'year': year,
        'status': status,
    }
    fields.update(extra)
    return record_store.fee_records.create(fields)


def fee(student_id=1, amount=500, month='July', year='2025', status=FeeStatusEnum.PENDING,
        batch='Morning', student_name='Asha', paid_date=None, record_id=None):
    """Unsaved fee record for the pure helpers"""
    return FeeRecord(id=record_id, student_id=student_id, student_name=student_name, batch=batch,
                     amount=amount, month=month, year=year, status=status, paid_date=paid_date)


def student(student_id=1, name='Asha', batch='Morning', fees=800, status=StatusEnum.ACTIVE, contact=None):
    return Student(id=student_id, name=name, batch=batch, fees=fees, status=status, contact=contact,
                   address='12 Lake Road', join_date=date(2025, 1, 10))
