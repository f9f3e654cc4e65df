"""
Configuration for the Academy Fee Desk
"""

import os
from urllib.parse import quote_plus
from sqlalchemy.pool import StaticPool
import dotenv
dotenv.load_dotenv()  # Load environment variables from .env file


def _env_flag(name, default):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration"""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'supersecretkey'
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    ACADEMY_NAME = os.environ.get('ACADEMY_NAME', 'Academy')

    # Database settings (DATABASE_URL wins over the individual DB_* values)
    DATABASE_URL = os.environ.get('DATABASE_URL')
    MYSQL_HOST = os.environ.get('DB_HOST', 'localhost')
    MYSQL_PORT = int(os.environ.get('DB_PORT', 3306))
    MYSQL_USERNAME = os.environ.get('DB_USER', 'academy')
    # NOTE: do NOT override an explicitly empty password from .env
    MYSQL_PASSWORD = os.environ.get('DB_PASS', '')
    MYSQL_DATABASE = os.environ.get('DB_NAME', 'academy_fees')
    MYSQL_CHARSET = 'utf8mb4'

    # SQLAlchemy settings
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_recycle': 280,
        'pool_pre_ping': True,
    }

    # Signed API tokens
    JWT_SECRET = os.environ.get('JWT_SECRET') or SECRET_KEY
    JWT_ALGORITHM = os.environ.get('JWT_ALGORITHM', 'HS256')
    TOKEN_EXPIRY_HOURS = int(os.environ.get('TOKEN_EXPIRY_HOURS', 24))

    # Default admin created by setup-db when no admin exists
    DEFAULT_ADMIN_USERNAME = os.environ.get('DEFAULT_ADMIN_USERNAME', 'admin')
    DEFAULT_ADMIN_PASSWORD = os.environ.get('DEFAULT_ADMIN_PASSWORD', 'change-me')

    # Fee behaviour
    SHOW_FEES_AND_INCOME = _env_flag('SHOW_FEES_AND_INCOME', True)
    AUTO_GENERATE_FEES = _env_flag('AUTO_GENERATE_FEES', True)
    FEE_CARRY_FORWARD_ARREARS = _env_flag('FEE_CARRY_FORWARD_ARREARS', False)

    def _encoded_password(self) -> str:
        """Percent-encode special characters for URL usage."""
        return quote_plus(self.MYSQL_PASSWORD) if self.MYSQL_PASSWORD else ''

    def get_database_uri(self) -> str:
        """Get the database URI."""
        if self.DATABASE_URL:
            return self.DATABASE_URL

        user = self.MYSQL_USERNAME
        pwd = self._encoded_password()
        host = self.MYSQL_HOST
        port = self.MYSQL_PORT
        database = self.MYSQL_DATABASE

        if pwd:
            return f"mysql+pymysql://{user}:{pwd}@{host}:{port}/{database}?charset={self.MYSQL_CHARSET}"
        return f"mysql+pymysql://{user}@{host}:{port}/{database}?charset={self.MYSQL_CHARSET}"


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret'
    JWT_SECRET = 'testing-jwt-secret'
    AUTO_GENERATE_FEES = False
    SHOW_FEES_AND_INCOME = True
    FEE_CARRY_FORWARD_ARREARS = False
    DEFAULT_ADMIN_USERNAME = 'admin'
    DEFAULT_ADMIN_PASSWORD = 'admin-pass'

    # In-memory SQLite shared by every session of the process
    SQLALCHEMY_ENGINE_OPTIONS = {
        'poolclass': StaticPool,
        'connect_args': {'check_same_thread': False},
    }

    def get_database_uri(self) -> str:
        return 'sqlite:///:memory:'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
