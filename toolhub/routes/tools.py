"""Tool directory, ratings, usage tracking and favorites routes."""

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest

from toolhub.core import client_ip, parse_int_arg, user_agent
from toolhub.services import tools

from .helpers import current_user, json_body, require_user


def register_tool_routes(bp: Blueprint, database) -> None:
    ratings = database["tool_ratings"]
    usage = database["tool_usage"]
    favorites = database["user_favorites"]

    @bp.get("/tools")
    def list_tools():
        items = tools.list_tools(request.args.get("category"), request.args.get("search"))
        return jsonify({"tools": items, "total": len(items)})

    @bp.get("/tools/<slug>")
    def get_tool(slug: str):
        tool = tools.get_tool(slug)
        return jsonify({"tool": tool, "ratingStats": tools.get_tool_rating_stats(ratings, slug)})

    # --------- Ratings ---------

    @bp.get("/tools/ratings")
    def list_ratings():
        slug = request.args.get("toolSlug")
        if not slug:
            raise BadRequest("toolSlug is required")
        limit = parse_int_arg("limit", 10)
        skip = parse_int_arg("skip", 0)
        if limit < 1 or limit > 50 or skip < 0:
            raise BadRequest("limit must be between 1 and 50 and skip non-negative")

        user = current_user(database)
        return jsonify(
            {
                "ratings": tools.get_tool_ratings(ratings, slug, limit, skip),
                "stats": tools.get_tool_rating_stats(ratings, slug),
                "userRating": tools.get_user_rating(ratings, user["id"], slug) if user else None,
            }
        )

    @bp.post("/tools/ratings")
    def rate_tool():
        user = require_user(database)
        doc = tools.add_rating(ratings, user, json_body())
        return jsonify({"success": True, "rating": tools.format_rating(doc)})

    @bp.put("/tools/ratings")
    def rating_feedback():
        payload = json_body()
        rating_id = payload.get("ratingId")
        action = payload.get("action")
        if not rating_id or action not in ("helpful", "report"):
            raise BadRequest("ratingId and an action of helpful or report are required")
        if action == "helpful":
            tools.mark_helpful(ratings, rating_id)
        else:
            tools.report_rating(ratings, rating_id)
        return jsonify({"success": True})

    # --------- Usage ---------

    @bp.post("/tools/usage/track")
    def track_usage():
        user = current_user(database)
        usage_id = tools.track_usage(
            usage,
            json_body(),
            user["id"] if user else None,
            {"ipAddress": client_ip(), "userAgent": user_agent()},
        )
        response = jsonify({"success": True, "id": usage_id})
        response.status_code = 201
        return response

    @bp.get("/tools/usage/track")
    def usage_stats():
        days = parse_int_arg("days", 30)
        if days < 1 or days > 365:
            raise BadRequest("days must be between 1 and 365")
        body = {"stats": tools.tool_usage_stats(usage, days), "days": days}
        user = current_user(database)
        if user is not None:
            body["userActivity"] = tools.user_activity(usage, user["id"], days)
        return jsonify(body)

    # --------- Favorites ---------

    @bp.get("/user/favorites")
    def list_favorites():
        user = require_user(database)
        return jsonify(
            {
                "favorites": tools.list_favorites(favorites, user["id"]),
                "stats": tools.favorite_stats(favorites, user["id"]),
            }
        )

    @bp.post("/user/favorites")
    def add_favorite():
        user = require_user(database)
        doc = tools.add_favorite(favorites, user["id"], json_body())
        response = jsonify({"success": True, "favorite": tools.format_favorite(doc)})
        response.status_code = 201
        return response

    @bp.put("/user/favorites")
    def update_favorite():
        user = require_user(database)
        payload = json_body()
        slug = payload.get("toolSlug")
        if not slug:
            raise BadRequest("toolSlug is required")
        doc = tools.update_favorite(favorites, user["id"], slug, payload)
        return jsonify({"success": True, "favorite": tools.format_favorite(doc)})

    @bp.delete("/user/favorites")
    def remove_favorite():
        user = require_user(database)
        slug = request.args.get("toolSlug") or json_body().get("toolSlug")
        if not slug:
            raise BadRequest("toolSlug is required")
        tools.remove_favorite(favorites, user["id"], slug)
        return jsonify({"success": True})
