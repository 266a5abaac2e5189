"""Contact form submission and admin triage routes."""

import logging

from flask import Blueprint, jsonify, request

from toolhub.core import client_ip, parse_int_arg
from toolhub.services import admin_accounts, contact

from .helpers import json_body, require_admin

logger = logging.getLogger(__name__)


def register_contact_routes(bp: Blueprint, database) -> None:
    messages = database["contact_messages"]

    @bp.post("/contact/messages")
    def submit_message():
        doc = contact.create_message(messages, json_body())
        logger.info("Contact message %s received", doc["_id"])
        response = jsonify(
            {"success": True, "message": "Thank you for your message! We'll get back to you soon.", "id": str(doc["_id"])}
        )
        response.status_code = 201
        return response

    @bp.get("/contact/messages")
    def list_messages():
        require_admin(database, "manage_content")
        limit = max(1, min(parse_int_arg("limit", 200), 200))
        items = contact.list_messages(messages, request.args.get("status"), limit)
        return jsonify({"messages": items, "total": len(items)})

    @bp.patch("/contact/messages")
    def update_message():
        admin = require_admin(database, "manage_content")
        payload = json_body()
        contact.update_message_status(messages, payload.get("id"), payload.get("status"))
        admin_accounts.log_activity(
            database,
            admin,
            "update_contact_status",
            "contact_messages",
            {"messageId": payload.get("id"), "status": payload.get("status")},
            client_ip(),
        )
        return jsonify({"success": True})
