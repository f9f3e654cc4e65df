"""
Academy Models
This file contains the shared declarative base, the admin account and the roster models
(students, batches, teachers)
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Date, Enum, Index
from sqlalchemy.orm import declarative_base
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, date
import enum

Base = declarative_base()


class SerializerMixin:
    """JSON-friendly dict of every column"""

    def to_dict(self):
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.key)
            if isinstance(value, enum.Enum):
                value = value.value
            elif isinstance(value, (datetime, date)):
                value = value.isoformat()
            data[column.key] = value
        return data


# ===== ENUMS =====

class StatusEnum(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class AdminRoleEnum(enum.Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


# ===== ADMIN MODEL =====

class Admin(Base, UserMixin):
    __tablename__ = 'admins'

    id = Column(Integer, primary_key=True)
    username = Column(String(80), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(Enum(AdminRoleEnum, values_callable=lambda obj: [e.value for e in obj]), default=AdminRoleEnum.ADMIN)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'role': self.role.value if self.role else None,
            'is_active': self.is_active,
            'last_login': self.last_login.isoformat() if self.last_login else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Admin {self.username}>'


# ===== ROSTER MODELS =====

class Student(Base, SerializerMixin):
    __tablename__ = 'students'
    __table_args__ = (
        Index('idx_student_name', 'name'),
        Index('idx_student_batch', 'batch'),
        Index('idx_student_status', 'status'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    batch = Column(String(100), nullable=False)  # Batch name, not a foreign key
    fees = Column(Integer, nullable=False)  # Monthly fee in whole Rupees
    contact = Column(String(50), nullable=True)
    email = Column(String(120), nullable=True)
    address = Column(Text, nullable=False)
    status = Column(Enum(StatusEnum, values_callable=lambda obj: [e.value for e in obj]), default=StatusEnum.ACTIVE)
    join_date = Column(Date, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Student {self.name} ({self.batch})>'


class Batch(Base, SerializerMixin):
    __tablename__ = 'batches'
    __table_args__ = (
        Index('idx_batch_teacher', 'teacher'),
        Index('idx_batch_status', 'status'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(100), unique=True, nullable=False)
    teacher = Column(String(100), nullable=False)  # Teacher name
    students = Column(Integer, default=0)  # Declared capacity
    fees = Column(Integer, nullable=False)
    schedule = Column(String(255), nullable=False)
    status = Column(Enum(StatusEnum, values_callable=lambda obj: [e.value for e in obj]), default=StatusEnum.ACTIVE)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Batch {self.name}>'


class Teacher(Base, SerializerMixin):
    __tablename__ = 'teachers'
    __table_args__ = (
        Index('idx_teacher_name', 'name'),
        Index('idx_teacher_status', 'status'),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    subject = Column(String(100), nullable=False)
    contact = Column(String(50), nullable=True)
    email = Column(String(120), nullable=True)
    batch = Column(String(100), nullable=False)
    salary = Column(Integer, nullable=False)  # Monthly salary
    join_date = Column(Date, nullable=False)
    status = Column(Enum(StatusEnum, values_callable=lambda obj: [e.value for e in obj]), default=StatusEnum.ACTIVE)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Teacher {self.name} ({self.subject})>'
