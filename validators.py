"""
Record Validation Utilities
Validates and normalizes incoming field data before it reaches the database
"""

import re
import enum
from datetime import datetime, date
from dateutil import parser as date_parser
from sqlalchemy import Integer, String, Text, Date, DateTime, Enum

from fee_models import MONTH_NAMES, SALARY_PAYMENT_METHODS, SalaryRecord


class ValidationError(Exception):
    """Custom exception for validation errors"""
    def __init__(self, field, message):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


# Columns managed by the database, never taken from input
READ_ONLY_FIELDS = {'id', 'created_at', 'updated_at'}

# Largest value an Integer column holds
MAX_AMOUNT = 2**31 - 1


class RecordValidator:
    """Validates record field data against the model columns"""

    @staticmethod
    def validate_month(month, field_name="month"):
        """
        Validate a month name
        Args:
            month: Full English month name, any case
        Returns:
            Canonical month name (e.g. "July")
        Raises:
            ValidationError if not one of the twelve month names
        """
        if month is None or not str(month).strip():
            raise ValidationError(field_name, "is required")

        cleaned = str(month).strip().lower()
        for name in MONTH_NAMES:
            if name.lower() == cleaned:
                return name
        raise ValidationError(field_name, "must be a full English month name")

    @staticmethod
    def validate_year(year, field_name="year"):
        """
        Validate a year - must be exactly 4 digits
        Returns:
            Year as a 4-character string
        """
        if year is None or isinstance(year, bool):
            raise ValidationError(field_name, "is required")

        cleaned = str(year).strip()
        if not re.fullmatch(r'\d{4}', cleaned):
            raise ValidationError(field_name, "must be a 4-digit year")
        return cleaned

    @staticmethod
    def validate_amount(value, field_name="amount"):
        """
        Validate a whole-Rupee amount
        Returns:
            Non-negative int no larger than MAX_AMOUNT
        """
        if value is None or isinstance(value, bool):
            raise ValidationError(field_name, "is required")

        if isinstance(value, float):
            if not value.is_integer():
                raise ValidationError(field_name, "must be a whole number")
            value = int(value)
        elif not isinstance(value, int):
            cleaned = str(value).strip()
            try:
                value = int(cleaned)
            except ValueError:
                try:
                    as_float = float(cleaned)
                except ValueError:
                    raise ValidationError(field_name, "must be a number")
                if not as_float.is_integer():
                    raise ValidationError(field_name, "must be a whole number")
                value = int(as_float)

        if value < 0:
            raise ValidationError(field_name, "cannot be negative")
        if value > MAX_AMOUNT:
            raise ValidationError(field_name, "is too large")
        return value

    @staticmethod
    def validate_date(value, field_name="date"):
        """
        Validate a date
        Args:
            value: date, datetime or ISO-8601 string (YYYY-MM-DD or a full timestamp)
        Returns:
            date object
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(field_name, "is required")
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value

        try:
            return date_parser.isoparse(str(value).strip()).date()
        except ValueError:
            raise ValidationError(field_name, "must be in YYYY-MM-DD format")

    @staticmethod
    def validate_email(email, field_name="email"):
        """Validate an optional email; returns it lower-cased"""
        if not email:
            return email

        email = str(email).strip().lower()
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(pattern, email):
            raise ValidationError(field_name, "is not a valid email address")
        return email

    @staticmethod
    def validate_choice(enum_class, value, field_name):
        """Convert a raw value to a member of enum_class"""
        if isinstance(value, enum_class):
            return value
        if isinstance(value, enum.Enum):
            value = value.value

        cleaned = str(value).strip()
        for member in enum_class:
            if member.value == cleaned or member.name == cleaned.upper():
                return member
        allowed = ", ".join(m.value for m in enum_class)
        raise ValidationError(field_name, f"must be one of: {allowed}")

    @classmethod
    def clean_record(cls, model, data, partial=False):
        """
        Validate input for a model
        Args:
            model: Declarative model class
            data: Mapping of raw field values
            partial: True for updates (only supplied fields are checked)
        Returns:
            dict of cleaned column values; unknown keys are dropped
        Raises:
            ValidationError on the first invalid field
        """
        if data is None:
            data = {}
        columns = {c.key: c for c in model.__table__.columns if c.key not in READ_ONLY_FIELDS}
        cleaned = {}

        if not partial:
            for key, column in columns.items():
                required = not column.nullable and column.default is None
                if required and is_blank(data.get(key)):
                    raise ValidationError(key, "is required")

        for key, value in data.items():
            column = columns.get(key)
            if column is None:
                continue
            # Blank input leaves a defaulted column to its default
            if column.default is not None and is_blank(value):
                continue
            cleaned[key] = cls._clean_value(model, column, value)

        return cleaned

    @classmethod
    def _clean_value(cls, model, column, value):
        key = column.key

        if is_blank(value):
            if not column.nullable:
                raise ValidationError(key, "is required")
            if isinstance(value, str) and isinstance(column.type, (String, Text)) \
                    and not isinstance(column.type, Enum):
                return ''
            return None

        if key == 'month':
            return cls.validate_month(value, key)
        if key == 'year':
            return cls.validate_year(value, key)
        if key == 'email':
            return cls.validate_email(value, key)

        column_type = column.type
        if isinstance(column_type, Enum) and column_type.enum_class is not None:
            member = cls.validate_choice(column_type.enum_class, value, key)
            if model is SalaryRecord and key == 'payment_method' and member not in SALARY_PAYMENT_METHODS:
                raise ValidationError(key, "is not accepted for salary payments")
            return member
        if isinstance(column_type, Integer):
            return cls.validate_amount(value, key)
        if isinstance(column_type, DateTime):
            if isinstance(value, datetime):
                return value
            try:
                return date_parser.isoparse(str(value).strip())
            except ValueError:
                raise ValidationError(key, "must be an ISO-8601 timestamp")
        if isinstance(column_type, Date):
            return cls.validate_date(value, key)
        if isinstance(column_type, (String, Text)):
            cleaned = str(value).strip()
            length = getattr(column_type, 'length', None)
            if length and len(cleaned) > length:
                raise ValidationError(key, f"must be at most {length} characters")
            return cleaned
        return value


def is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())
