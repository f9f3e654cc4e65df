"""
Admin Authentication Routes
Login, token verification, logout and the admin account list
"""

from flask import Blueprint, request, jsonify, session
from flask_login import login_user, logout_user, current_user
import logging

from auth_helpers import (
    authenticate, create_token, decode_token, bearer_token, load_admin, list_admins, require_auth
)

logger = logging.getLogger(__name__)


def create_admin_blueprint():
    """Create the authentication blueprint"""

    auth_bp = Blueprint('auth', __name__)

    @auth_bp.route('/login', methods=['POST'])
    def login():
        """Admin login; answers with a signed token and starts a session"""
        data = request.get_json(silent=True) or request.form
        username = data.get('username')
        password = data.get('password')

        if not username or not password:
            return jsonify({'error': 'Please enter both username and password'}), 400

        admin = authenticate(username, password)
        if admin is None:
            return jsonify({'error': 'Invalid username or password'}), 401

        login_user(admin)
        token = create_token(admin)
        logger.info(f"Admin '{admin.username}' logged in")
        return jsonify({
            'success': True,
            'token': token,
            'admin': admin.to_dict(),
        })

    @auth_bp.route('/verify')
    def verify():
        """Check a bearer token, or the current session when no token is sent"""
        token = bearer_token()
        if token:
            payload = decode_token(token)
            admin = load_admin(payload.get('admin_id')) if payload else None
            if admin is None:
                return jsonify({'valid': False, 'error': 'Invalid or expired token'}), 401
            return jsonify({'valid': True, 'admin': admin.to_dict()})

        if current_user.is_authenticated:
            return jsonify({'valid': True, 'admin': current_user.to_dict()})
        return jsonify({'valid': False, 'error': 'No token provided'}), 401

    @auth_bp.route('/logout', methods=['POST'])
    @require_auth
    def logout():
        """End the session"""
        session.clear()
        logout_user()
        return jsonify({'success': True, 'message': 'You have been logged out successfully'})

    @auth_bp.route('/admins')
    @require_auth
    def admins():
        """Admin accounts without their password hashes"""
        return jsonify([admin.to_dict() for admin in list_admins()])

    return auth_bp
