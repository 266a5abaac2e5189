"""Quote generator route."""

from datetime import datetime

from flask import Blueprint, jsonify

from toolhub.services import quotes

from .helpers import current_user, json_body, text_generator

REQUEST_FIELDS = ("birthDate", "topic", "mood", "author", "count", "language")


def register_quote_routes(bp: Blueprint, database) -> None:
    @bp.post("/quote")
    def generate_quotes():
        payload = json_body()
        request_data = {key: payload.get(key) for key in REQUEST_FIELDS}
        result = quotes.generate_quotes(request_data, text_generator())

        user = current_user(database)
        if user is not None:
            database["quote_requests"].insert_one(
                {
                    "userId": user["id"],
                    **request_data,
                    "quoteCount": len(result["quotes"]),
                    "createdAt": datetime.utcnow(),
                }
            )
        return jsonify(result)
