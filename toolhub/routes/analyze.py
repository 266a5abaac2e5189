"""AI analysis routes (SWOT and personal finance)."""

from flask import Blueprint, jsonify

from toolhub.core import client_ip, user_agent
from toolhub.services import ai_analysis

from .helpers import current_user, json_body, text_generator


def register_analyze_routes(bp: Blueprint, database) -> None:
    @bp.post("/analyze/swot")
    def analyze_swot():
        payload = json_body()
        user = current_user(database)
        result = ai_analysis.run_swot_analysis(
            database,
            user["id"] if user else None,
            payload.get("swotType"),
            payload.get("formData"),
            bool(payload.get("forceRegenerate")),
            {"userAgent": user_agent(), "ipAddress": client_ip()},
            llm=text_generator(),
        )
        return jsonify(result)

    @bp.post("/analyze/finance")
    def analyze_finance():
        payload = json_body()
        result = ai_analysis.run_finance_analysis(
            database, payload.get("profile"), client_ip(), llm=text_generator()
        )
        return jsonify(result)
