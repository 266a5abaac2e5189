"""Signed-in user's analysis history routes."""

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import BadRequest

from toolhub.core import parse_pagination
from toolhub.services import analysis_history

from .helpers import json_body, require_user


def register_history_routes(bp: Blueprint, database) -> None:
    history = database["analysis_history"]

    @bp.get("/user/history")
    def list_history():
        user = require_user(database)
        if request.args.get("format") == "export":
            return jsonify(analysis_history.export_history(history, user["id"]))
        limit, offset = parse_pagination(default_limit=20)
        items, total = analysis_history.list_history(
            history, user["id"], limit, offset, request.args.get("toolSlug")
        )
        return jsonify(
            {
                "analyses": items,
                "total": total,
                "limit": limit,
                "offset": offset,
                "hasMore": offset + len(items) < total,
            }
        )

    @bp.get("/user/history/stats")
    def history_stats():
        user = require_user(database)
        groups = analysis_history.get_duplicate_groups(history, user["id"])
        return jsonify(
            {
                "stats": analysis_history.user_stats(history, user["id"]),
                "toolUsage": analysis_history.tool_usage_stats(history, user["id"]),
                "duplicateGroups": [
                    {
                        "parameterHash": group[0].get("parameterHash"),
                        "count": len(group),
                        "analyses": [analysis_history.format_analysis(doc) for doc in group],
                    }
                    for group in groups
                ],
            }
        )

    @bp.get("/user/history/<analysis_id>")
    def get_analysis(analysis_id: str):
        user = require_user(database)
        cached = analysis_history.get_cached_result(history, analysis_id, user["id"])
        return jsonify({"id": analysis_id, **cached})

    @bp.delete("/user/history/<analysis_id>")
    def delete_analysis(analysis_id: str):
        user = require_user(database)
        analysis_history.delete_analysis(history, analysis_id, user["id"])
        return jsonify({"success": True})

    @bp.post("/user/history/cleanup")
    def cleanup():
        user = require_user(database)
        days_old = json_body().get("daysOld", 30)
        if isinstance(days_old, bool) or not isinstance(days_old, int) or days_old < 0:
            raise BadRequest("daysOld must be a non-negative integer")
        removed = analysis_history.cleanup_duplicates(history, user["id"], days_old)
        return jsonify({"success": True, "deletedCount": removed})
