import logging
import os

import click
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized

from toolhub.core import (
    configure_logging,
    ensure_indexes,
    get_app_settings,
    get_auth_settings,
    get_database,
    get_mongo_client,
    load_environment,
)
from toolhub.routes import create_api_blueprint, create_redirect_blueprint
from toolhub.services.admin_accounts import ROLE_PERMISSIONS, create_admin

logger = logging.getLogger(__name__)


def create_app(database=None) -> Flask:
    load_environment()
    app_settings = get_app_settings()
    configure_logging(app_settings["log_level"])
    auth_settings = get_auth_settings()

    app = Flask(__name__)

    allowed_origin = app_settings["client_origin"]
    CORS(
        app,
        resources={r"/api/*": {"origins": [allowed_origin]}},
        supports_credentials=True,
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        expose_headers=["Content-Type"],
    )

    mongo_client = None
    if database is None:
        mongo_client = get_mongo_client()
        database = get_database(mongo_client)
    ensure_indexes(database)

    app.config.update(
        AUTH_SETTINGS=auth_settings,
        APP_SETTINGS=app_settings,
        MONGO_CLIENT=mongo_client,
        MONGO_DB=database,
    )

    @app.route("/api/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    @app.errorhandler(Unauthorized)
    def handle_unauthorized(error):
        response = jsonify({"error": "unauthorized", "message": error.description})
        response.status_code = 401
        return response

    @app.errorhandler(BadRequest)
    def handle_bad_request(error):
        response = jsonify({"error": "bad_request", "message": error.description})
        response.status_code = 400
        return response

    @app.errorhandler(Forbidden)
    def handle_forbidden(error):
        response = jsonify({"error": "forbidden", "message": error.description})
        response.status_code = 403
        return response

    @app.errorhandler(NotFound)
    def handle_not_found(error):
        response = jsonify({"error": "not_found", "message": error.description})
        response.status_code = 404
        return response

    @app.errorhandler(Conflict)
    def handle_conflict(error):
        response = jsonify({"error": "conflict", "message": error.description})
        response.status_code = 409
        return response

    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    @click.option("--role", type=click.Choice(sorted(ROLE_PERMISSIONS)), default="super_admin")
    @click.option("--first-name", default="")
    @click.option("--last-name", default="")
    def create_admin_command(email, password, role, first_name, last_name):
        """Create an admin account, e.g. the first super admin."""
        doc = create_admin(
            database["adminusers"],
            email,
            password,
            role=role,
            first_name=first_name,
            last_name=last_name,
            rounds=auth_settings["bcrypt_rounds"],
        )
        click.echo(f"Created {role} {doc['email']} ({doc['_id']})")

    app.register_blueprint(create_api_blueprint(database))
    app.register_blueprint(create_redirect_blueprint(database))

    logger.info("ToolHub API ready")
    return app


if __name__ == "__main__":
    # Create and run the Flask app directly (use Flask CLI in production)
    app = create_app()
    port = int(os.environ.get("PORT", "8000"))
    debug = os.environ.get("FLASK_DEBUG", "1") in ("1", "true", "True")
    app.run(host="0.0.0.0", port=port, debug=debug)
