"""
Flask application factory.

Creates and configures the Flask app, registers all blueprints.
"""
from flask import Flask


def create_app():
    """Create and configure the Flask application."""
    from leadflow.logging_config import configure_logging

    app = Flask(__name__)

    configure_logging(app)

    # Register blueprints
    from leadflow.routes.webhook import bp as webhook_bp
    from leadflow.routes.leads import bp as leads_bp
    from leadflow.routes.reports import bp as reports_bp

    app.register_blueprint(webhook_bp)
    app.register_blueprint(leads_bp)
    app.register_blueprint(reports_bp)

    # Import models so Base.metadata knows about them (required for SQLAlchemy).
    # Schema is managed by Alembic — no create_all() call.
    import importlib
    importlib.import_module('leadflow.models.website_config')
    importlib.import_module('leadflow.models.lead')
    importlib.import_module('leadflow.models.status_change')
    importlib.import_module('leadflow.models.spam_rule')
    importlib.import_module('leadflow.models.daily_report')

    return app
