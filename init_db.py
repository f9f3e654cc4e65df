"""
Database Initialization and Integrity Checker
Ensures the database, every table and a default admin account exist
"""

import sys
import logging
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import OperationalError
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from config import Config
import db_single

# Import all models to register them with Base.metadata
from models import Base, Admin, Student, Batch, Teacher
from fee_models import FeeRecord, SalaryRecord
from expense_models import Expense, PersonalExpense

logger = logging.getLogger(__name__)


def create_database_if_not_exists(db_url):
    """Create the MySQL database if it doesn't exist"""
    if not db_url.startswith('mysql'):
        return

    url_obj = make_url(db_url)
    db_name = url_obj.database
    temp_engine = create_engine(url_obj.set(database='mysql'))

    try:
        with temp_engine.connect() as conn:
            conn.execution_options(isolation_level="AUTOCOMMIT")
            conn.execute(text(f'CREATE DATABASE IF NOT EXISTS `{db_name}`'))
            logger.info(f"Database ready: {db_name}")
    except OperationalError as e:
        logger.warning(f"Could not create database {db_name}: {e}")
    finally:
        temp_engine.dispose()


def get_existing_tables(engine):
    """Get list of existing tables in database"""
    inspector = inspect(engine)
    return set(inspector.get_table_names())


def get_expected_tables():
    """Get list of all expected tables from models"""
    return set(Base.metadata.tables.keys())


def create_missing_tables(engine):
    """Create any missing tables; returns their names"""
    missing_tables = get_expected_tables() - get_existing_tables(engine)
    if not missing_tables:
        logger.info("All tables exist")
        return []

    tables = [Base.metadata.tables[name] for name in sorted(missing_tables)]
    Base.metadata.create_all(engine, tables=tables, checkfirst=True)
    logger.info(f"Created {len(tables)} tables: {', '.join(t.name for t in tables)}")
    return [t.name for t in tables]


def create_default_admin_user(config):
    """Create the default admin when no admin exists"""
    session = db_single.get_session()
    try:
        if session.query(Admin).count() > 0:
            return False

        admin = Admin(username=config.DEFAULT_ADMIN_USERNAME)
        admin.set_password(config.DEFAULT_ADMIN_PASSWORD)
        session.add(admin)
        session.commit()
        logger.warning(f"Created default admin user '{config.DEFAULT_ADMIN_USERNAME}'. "
                       f"Change the password immediately in production!")
        return True
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def initialize_database(config=None):
    """
    Create the database, tables and default admin
    Returns: (success: bool, created_tables: list)
    """
    config = config or Config()
    try:
        db_url = config.get_database_uri()
        create_database_if_not_exists(db_url)

        if db_single.ENGINE is None:
            db_single.init_database(config)
        engine = db_single.get_engine()
        with engine.connect():
            logger.info("Database connection successful")

        created_tables = create_missing_tables(engine)
        create_default_admin_user(config)
        return True, created_tables

    except OperationalError as e:
        logger.error(f"Database initialization failed: {e}")
        return False, []


def run_on_startup(config=None):
    """Wrapper function to run on application startup"""
    success, created_tables = initialize_database(config)

    if not success:
        logger.warning("Database initialization failed! Check the database configuration and try again.")
        return False

    return True


if __name__ == '__main__':
    """Run standalone"""
    logging.basicConfig(level=logging.INFO)
    success = run_on_startup()
    sys.exit(0 if success else 1)
