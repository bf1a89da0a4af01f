"""
Claude Dashboard Flask Routes
Organized route blueprints for the Flask API.

Handlers reach the long-lived components (store, broadcaster, launcher,
sidecar) through get_context(), never through module globals.
"""

from flask import Blueprint, current_app

CONTEXT_KEY = "claude_dashboard"


def get_context():
    """Return the ServerContext attached to the running app."""
    return current_app.extensions[CONTEXT_KEY]


# Create blueprints
assets_bp = Blueprint('assets', __name__)
state_bp = Blueprint('state', __name__)
brain_bp = Blueprint('brain', __name__)
reports_bp = Blueprint('reports', __name__)
guardian_bp = Blueprint('guardian', __name__)

# Import route handlers to register them
from . import assets  # noqa: E402
from . import state  # noqa: E402
from . import brain  # noqa: E402
from . import reports  # noqa: E402
from . import guardian  # noqa: E402


def register_blueprints(app):
    """Register all blueprints with the Flask app."""
    app.register_blueprint(assets_bp)
    app.register_blueprint(state_bp)
    app.register_blueprint(brain_bp, url_prefix='/api/brain')
    app.register_blueprint(reports_bp, url_prefix='/api')
    app.register_blueprint(guardian_bp, url_prefix='/api/guardian')
