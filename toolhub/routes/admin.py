"""Admin panel routes: admin login, admin accounts, user management, dashboard."""

import logging

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import BadRequest

from toolhub.core import client_ip, parse_pagination
from toolhub.services import admin_accounts, dashboard

from .helpers import ADMIN_COOKIE, clear_session_cookie, current_admin, json_body, require_admin, set_session_cookie

logger = logging.getLogger(__name__)

USER_ACTIONS = {"suspend": False, "activate": True}


def register_admin_routes(bp: Blueprint, database) -> None:
    admins = database["adminusers"]

    def _audit(admin, action: str, resource: str, **details) -> None:
        admin_accounts.log_activity(database, admin, action, resource, details, client_ip())

    @bp.post("/admin/auth/login")
    def admin_login():
        payload = json_body()
        session = admin_accounts.authenticate_admin(admins, payload.get("email"), payload.get("password"))
        token = admin_accounts.create_admin_token(session, current_app.config["AUTH_SETTINGS"])
        _audit(session, "login", "admin_auth")

        response = jsonify({"success": True, "admin": session, "token": token})
        set_session_cookie(response, ADMIN_COOKIE, token)
        return response

    @bp.post("/admin/auth/logout")
    def admin_logout():
        admin = current_admin(database)
        if admin is not None:
            _audit(admin, "logout", "admin_auth")
        response = jsonify({"success": True, "message": "Logged out successfully"})
        clear_session_cookie(response, ADMIN_COOKIE)
        return response

    @bp.get("/admin/auth/me")
    def admin_me():
        return jsonify({"admin": require_admin(database)})

    # --------- Admin accounts ---------

    @bp.get("/admin/admin-users")
    def list_admin_users():
        require_admin(database, "manage_admins")
        return jsonify({"admins": admin_accounts.list_admins(admins)})

    @bp.post("/admin/admin-users")
    def create_admin_user():
        admin = require_admin(database, "manage_admins")
        payload = json_body()
        doc = admin_accounts.create_admin(
            admins,
            payload.get("email"),
            payload.get("password"),
            role=payload.get("role") or "admin",
            first_name=payload.get("firstName") or "",
            last_name=payload.get("lastName") or "",
            rounds=current_app.config["AUTH_SETTINGS"]["bcrypt_rounds"],
            created_by=admin["id"],
        )
        _audit(admin, "create_admin", "admin_users", adminId=str(doc["_id"]), role=doc["role"])
        response = jsonify({"success": True, "admin": admin_accounts.format_admin(doc)})
        response.status_code = 201
        return response

    @bp.patch("/admin/admin-users/<admin_id>")
    def update_admin_user(admin_id: str):
        admin = require_admin(database, "manage_admins")
        payload = json_body()
        if admin_id == admin["id"] and payload.get("isActive") is False:
            raise BadRequest("You cannot deactivate your own account")
        updated = admin_accounts.update_admin(
            admins, admin_id, payload, current_app.config["AUTH_SETTINGS"]["bcrypt_rounds"]
        )
        changed = sorted(key for key in payload if key != "password")
        _audit(admin, "update_admin", "admin_users", adminId=admin_id, fields=changed)
        return jsonify({"success": True, "admin": updated})

    @bp.delete("/admin/admin-users/<admin_id>")
    def delete_admin_user(admin_id: str):
        admin = require_admin(database, "manage_admins")
        if admin_id == admin["id"]:
            raise BadRequest("You cannot deactivate your own account")
        admin_accounts.deactivate_admin(admins, admin_id)
        _audit(admin, "deactivate_admin", "admin_users", adminId=admin_id)
        return jsonify({"success": True, "message": "Admin user deactivated"})

    @bp.post("/admin/admin-users/<admin_id>/unlock")
    def unlock_admin_user(admin_id: str):
        admin = require_admin(database, "manage_admins")
        admin_accounts.unlock_admin(admins, admin_id)
        _audit(admin, "unlock_admin", "admin_users", adminId=admin_id)
        return jsonify({"success": True, "message": "Admin user unlocked"})

    # --------- End users ---------

    @bp.get("/admin/users")
    def list_users():
        require_admin(database, "manage_users")
        limit, offset = parse_pagination()
        users, total = dashboard.list_users(database, request.args.get("search"), limit, offset)
        return jsonify({"users": users, "total": total, "limit": limit, "offset": offset})

    @bp.post("/admin/users/<user_id>/actions")
    def user_action(user_id: str):
        admin = require_admin(database, "manage_users")
        action = json_body().get("action")
        if action not in USER_ACTIONS:
            raise BadRequest(f"action must be one of: {', '.join(USER_ACTIONS)}")
        user = dashboard.set_user_active(database, user_id, USER_ACTIONS[action])
        _audit(admin, f"{action}_user", "users", userId=user_id)
        logger.info("Admin %s applied %s to user %s", admin["id"], action, user_id)
        return jsonify({"success": True, "user": user})

    @bp.get("/admin/dashboard/stats")
    def dashboard_stats():
        require_admin(database, "view_dashboard")
        return jsonify(dashboard.dashboard_stats(database))
