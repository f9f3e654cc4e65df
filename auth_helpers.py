"""
Authentication Helper Functions
Admin credential checks, signed API tokens and the route guard
"""

from datetime import datetime, timedelta, timezone
from functools import wraps
from flask import current_app, request, jsonify, g
from flask_login import current_user
import jwt
import logging

from db_single import get_session
from models import Admin, AdminRoleEnum

logger = logging.getLogger(__name__)


def authenticate(username, password):
    """
    Check admin credentials
    Returns:
        Admin on success, None otherwise; last_login is stamped on success
    """
    if not username or not password:
        return None

    session = get_session()
    try:
        admin = session.query(Admin).filter_by(username=username.strip()).first()
        if not admin or not admin.is_active or not admin.check_password(password):
            logger.info(f"Failed login attempt for '{username}'")
            return None

        admin.last_login = datetime.utcnow()
        session.commit()
        return admin
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def load_admin(admin_id):
    """Active admin by id, or None"""
    try:
        admin_id = int(admin_id)
    except (TypeError, ValueError):
        return None

    session = get_session()
    try:
        admin = session.get(Admin, admin_id)
        if admin is None or not admin.is_active:
            return None
        return admin
    finally:
        session.close()


def list_admins():
    """Every admin account, oldest first"""
    session = get_session()
    try:
        return session.query(Admin).order_by(Admin.id).all()
    finally:
        session.close()


def create_admin(username, password, role=AdminRoleEnum.ADMIN):
    """Create an admin account; returns None when the username is taken"""
    session = get_session()
    try:
        if session.query(Admin).filter_by(username=username).first():
            return None
        admin = Admin(username=username, role=role)
        admin.set_password(password)
        session.add(admin)
        session.commit()
        logger.info(f"Created admin '{username}'")
        return admin
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_token(admin):
    """Signed token carrying the admin id, username and role"""
    now = datetime.now(tz=timezone.utc)
    hours = current_app.config.get('TOKEN_EXPIRY_HOURS', 24)
    payload = {
        "sub": str(admin.id),
        "admin_id": admin.id,
        "username": admin.username,
        "role": admin.role.value if admin.role else AdminRoleEnum.ADMIN.value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=hours)).timestamp()),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm=current_app.config['JWT_ALGORITHM'])


def decode_token(token):
    """Token payload, or None when the token is invalid or expired"""
    try:
        return jwt.decode(token, current_app.config['JWT_SECRET'],
                          algorithms=[current_app.config['JWT_ALGORITHM']])
    except jwt.PyJWTError as e:
        logger.debug(f"Rejected token: {e}")
        return None


def bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def fees_visible():
    """Fee and income figures are shown"""
    return bool(current_app.config.get('SHOW_FEES_AND_INCOME', True))


def require_auth(f):
    """Decorator to require a logged-in session or a valid bearer token"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_user.is_authenticated:
            g.admin_id = current_user.id
            return f(*args, **kwargs)

        token = bearer_token()
        payload = decode_token(token) if token else None
        if payload and load_admin(payload.get('admin_id')) is not None:
            g.admin_id = payload['admin_id']
            return f(*args, **kwargs)

        return jsonify({'error': 'Authentication required'}), 401

    return decorated_function


def require_fees_visible(f):
    """Decorator refusing fee and income reports when they are hidden"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not fees_visible():
            return jsonify({'error': 'Fee and income figures are hidden'}), 403
        return f(*args, **kwargs)

    return decorated_function
