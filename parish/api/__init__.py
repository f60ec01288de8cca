"""API blueprints."""

from flask import Blueprint

# Create main API blueprint
api_bp = Blueprint("api", __name__, url_prefix="/api")

# Resource blueprints are registered in parish/startup.py:register_blueprints()
