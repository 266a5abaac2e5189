"""Blueprint factories for API routes."""

from flask import Blueprint

from .admin import register_admin_routes
from .analyze import register_analyze_routes
from .auth import register_auth_routes
from .contact import register_contact_routes
from .history import register_history_routes
from .price_tracker import register_price_tracker_routes
from .quotes import register_quote_routes
from .redirects import register_redirect_routes
from .tools import register_tool_routes
from .url_shortener import register_url_shortener_routes


def create_api_blueprint(database) -> Blueprint:
    bp = Blueprint("api", __name__, url_prefix="/api")

    register_auth_routes(bp, database)
    register_admin_routes(bp, database)
    register_tool_routes(bp, database)
    register_quote_routes(bp, database)
    register_price_tracker_routes(bp, database)
    register_analyze_routes(bp, database)
    register_history_routes(bp, database)
    register_url_shortener_routes(bp, database)
    register_contact_routes(bp, database)

    return bp


def create_redirect_blueprint(database) -> Blueprint:
    bp = Blueprint("redirects", __name__)
    register_redirect_routes(bp, database)
    return bp
