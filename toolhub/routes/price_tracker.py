"""Product price tracker route."""

import logging
from datetime import date, datetime

from flask import Blueprint, jsonify
from werkzeug.exceptions import BadRequest

from toolhub.core import isoformat
from toolhub.services import prices

from .helpers import json_body

logger = logging.getLogger(__name__)

DEFAULT_TIME_RANGE = 7
MAX_TIME_RANGE = 365
FALLBACK_BASE_PRICE = 500


def register_price_tracker_routes(bp: Blueprint, database) -> None:
    @bp.post("/price-tracker")
    def track_price():
        payload = json_body()
        product_name = payload.get("productName")
        if not isinstance(product_name, str) or not product_name.strip():
            raise BadRequest("Product name is required and must be a string")
        try:
            days = int(payload.get("timeRange") or DEFAULT_TIME_RANGE)
        except (TypeError, ValueError):
            raise BadRequest("timeRange must be an integer")
        if days < 1 or days > MAX_TIME_RANGE:
            raise BadRequest(f"timeRange must be between 1 and {MAX_TIME_RANGE}")

        logger.info("Price tracker request for %r", product_name)
        product = prices.get_product_info_and_prices(product_name.strip())
        base_price = product["averagePrice"] or product["lowestPrice"] or FALLBACK_BASE_PRICE
        today = date.today()
        history = prices.generate_price_history(days, base_price, today=today)
        labels = [prices.date_label(date.fromisoformat(item["date"]), today) for item in history]

        return jsonify(
            {
                "success": True,
                "product": product,
                "priceHistory": history,
                "dateLabels": labels,
                "timeRange": days,
                "timestamp": isoformat(datetime.utcnow()),
            }
        )
