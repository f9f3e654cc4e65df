# main.py
"""
Academy Fee Desk
JSON API over the academy's students, batches, teachers, fees, salaries and expenses
"""

import os
import logging
from flask import Flask, jsonify
from flask_login import LoginManager

# --- local modules ---
from config import config
from db_single import init_database
from init_db import run_on_startup
from auth_helpers import load_admin, require_auth
from validators import ValidationError
from record_store import DuplicateRecordError, NotFoundError, StoreUnavailableError
from cli_commands import register_cli_commands


def create_app(config_name=None) -> Flask:
    """Create the application for a named configuration"""
    config_name = config_name or os.environ.get('FLASK_CONFIG', 'default')
    settings = config[config_name]()

    app = Flask(__name__)
    app.config.from_object(settings)
    app.config['SETTINGS'] = settings

    # Logging
    logging.basicConfig(level=getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO))
    logger = logging.getLogger(__name__)

    # DB init
    init_database(settings)
    if not run_on_startup(settings):
        logger.warning("Database initialization had issues! Application will continue but may not work correctly.")

    # Flask-Login
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id: str):
        return load_admin(user_id)

    # CLI
    register_cli_commands(app)

    # Blueprints
    from admin_routes import create_admin_blueprint
    from data_routes import create_data_blueprint
    from dashboard_routes import dashboard_bp

    app.register_blueprint(create_admin_blueprint(), url_prefix="/api/auth")
    app.register_blueprint(dashboard_bp, url_prefix="/api")
    app.register_blueprint(create_data_blueprint(require_auth), url_prefix="/api")
    logger.info("✅ API blueprints registered")

    @app.route("/")
    def index():
        return jsonify({'status': 'ok', 'service': 'academy-fee-desk'})

    # Errors
    @app.errorhandler(ValidationError)
    def validation_error(e):
        return jsonify({'error': e.message, 'field': e.field}), 400

    @app.errorhandler(DuplicateRecordError)
    def duplicate_record(e):
        return jsonify({'error': str(e)}), 409

    @app.errorhandler(NotFoundError)
    def record_not_found(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(StoreUnavailableError)
    def store_unavailable(e):
        return jsonify({'error': str(e)}), 503

    @app.errorhandler(404)
    def nf(_):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(_):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def ie(e):
        logger.error(f"Internal error: {e}")
        return jsonify({'error': 'Internal error'}), 500

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, host="0.0.0.0", port=5000)
