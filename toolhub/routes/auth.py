"""End-user authentication and account routes."""

from flask import Blueprint, current_app, jsonify

from toolhub.services import accounts

from .helpers import USER_COOKIE, clear_session_cookie, json_body, require_user, set_session_cookie


def register_auth_routes(bp: Blueprint, database) -> None:
    users = database["authusers"]

    def _session_response(user, status: int = 200):
        token = accounts.create_user_token(user, current_app.config["AUTH_SETTINGS"])
        response = jsonify({"success": True, "user": user, "token": token})
        response.status_code = status
        set_session_cookie(response, USER_COOKIE, token)
        return response

    @bp.post("/auth/register")
    def register():
        rounds = current_app.config["AUTH_SETTINGS"]["bcrypt_rounds"]
        user = accounts.register_user(users, json_body(), rounds)
        return _session_response(user, 201)

    @bp.post("/auth/login")
    def login():
        payload = json_body()
        identifier = payload.get("email") or payload.get("username") or payload.get("identifier")
        user = accounts.authenticate_user(users, identifier, payload.get("password"))
        return _session_response(user)

    @bp.post("/auth/logout")
    def logout():
        response = jsonify({"success": True, "message": "Logged out successfully"})
        clear_session_cookie(response, USER_COOKIE)
        return response

    @bp.get("/auth/me")
    def me():
        return jsonify({"user": require_user(database)})

    @bp.post("/auth/forgot-password")
    def forgot_password():
        base_url = current_app.config["APP_SETTINGS"]["base_url"]
        message = accounts.request_password_reset(database, json_body().get("email"), base_url)
        return jsonify({"success": True, "message": message})

    @bp.post("/auth/reset-password")
    def reset_password():
        payload = json_body()
        rounds = current_app.config["AUTH_SETTINGS"]["bcrypt_rounds"]
        accounts.reset_password(database, payload.get("token"), payload.get("password"), rounds)
        return jsonify({"success": True, "message": "Password has been reset successfully"})

    @bp.post("/user/change-password")
    def change_password():
        user = require_user(database)
        payload = json_body()
        accounts.update_password(
            users,
            user["id"],
            payload.get("currentPassword"),
            payload.get("newPassword"),
            current_app.config["AUTH_SETTINGS"]["bcrypt_rounds"],
        )
        return jsonify({"success": True, "message": "Password updated successfully"})
