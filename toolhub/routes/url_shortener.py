"""URL shortener management routes."""

import logging
from typing import Any, Dict, Optional

from flask import Blueprint, current_app, jsonify, request
from werkzeug.exceptions import Forbidden, NotFound

from toolhub.core import parse_pagination, validate_object_id
from toolhub.services import url_shortener

from .helpers import current_user, json_body, require_user

logger = logging.getLogger(__name__)


def register_url_shortener_routes(bp: Blueprint, database) -> None:
    urls = database["shortened_urls"]

    def _base_url() -> str:
        return current_app.config["APP_SETTINGS"]["base_url"]

    def _owner(anonymous_id: Optional[str]) -> Optional[Dict[str, Any]]:
        user = current_user(database)
        return url_shortener.owner_query(user["id"] if user else None, anonymous_id)

    def _owned_url(url_id: str) -> Dict[str, Any]:
        doc = urls.find_one({"_id": validate_object_id(url_id)})
        if doc is None:
            raise NotFound("URL not found")
        owner = _owner(request.args.get("anonymousUserId"))
        if owner is None or any(doc.get(key) != value for key, value in owner.items()):
            raise Forbidden("You do not have access to this URL")
        return doc

    @bp.post("/url-shortener")
    def shorten():
        payload = json_body()
        user = current_user(database)
        doc = url_shortener.create_short_url(urls, payload, user["id"] if user else None)
        logger.info("Created short code %s", doc["shortCode"])
        response = jsonify({"success": True, "url": url_shortener.format_url(doc, _base_url())})
        response.status_code = 201
        return response

    @bp.get("/url-shortener")
    def list_urls():
        limit, offset = parse_pagination()
        owner = _owner(request.args.get("anonymousUserId"))
        if owner is None:
            return jsonify({"urls": [], "total": 0, "limit": limit, "offset": offset})
        active_only = request.args.get("includeInactive", "").lower() not in ("1", "true")
        docs, total = url_shortener.list_urls(urls, owner, active_only, limit, offset)
        base_url = _base_url()
        return jsonify(
            {
                "urls": [url_shortener.format_url(doc, base_url) for doc in docs],
                "total": total,
                "limit": limit,
                "offset": offset,
            }
        )

    @bp.get("/url-shortener/stats")
    def url_stats():
        owner = _owner(request.args.get("anonymousUserId"))
        if owner is None:
            return jsonify(
                {
                    "totalUrls": 0,
                    "totalClicks": 0,
                    "activeUrls": 0,
                    "expiredUrls": 0,
                    "averageClicks": 0,
                    "recentUrls": [],
                    "topUrls": [],
                    "recentActivity": [],
                }
            )
        return jsonify(url_shortener.owner_stats(urls, owner, _base_url()))

    @bp.get("/url-shortener/<url_id>")
    def get_url(url_id: str):
        doc = _owned_url(url_id)
        return jsonify(
            {
                "url": url_shortener.format_url(doc, _base_url()),
                "analytics": url_shortener.url_analytics(doc),
            }
        )

    @bp.patch("/url-shortener/<url_id>")
    def update_url(url_id: str):
        _owned_url(url_id)
        doc = url_shortener.update_url(urls, url_id, json_body())
        return jsonify({"success": True, "url": url_shortener.format_url(doc, _base_url())})

    @bp.delete("/url-shortener/<url_id>")
    def delete_url(url_id: str):
        _owned_url(url_id)
        url_shortener.soft_delete(urls, url_id)
        return jsonify({"success": True, "message": "URL deleted successfully"})

    @bp.post("/url-shortener/bulk")
    def bulk():
        user = require_user(database)
        payload = json_body()
        modified = url_shortener.bulk_update(
            urls, payload.get("urlIds"), user["id"], payload.get("operation"), payload.get("days")
        )
        return jsonify({"success": True, "modifiedCount": modified})
