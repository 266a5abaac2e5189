"""Public short-link redirects."""

import logging

from flask import Blueprint, redirect, request
from pymongo.errors import PyMongoError
from werkzeug.exceptions import NotFound

from toolhub.core import client_ip, user_agent
from toolhub.services import url_shortener

logger = logging.getLogger(__name__)


def register_redirect_routes(bp: Blueprint, database) -> None:
    urls = database["shortened_urls"]

    def _follow(code: str):
        doc = url_shortener.resolve_short_code(urls, code)
        if doc is None:
            raise NotFound("Short URL not found or expired")
        try:
            url_shortener.track_click(
                urls,
                doc,
                {"ipAddress": client_ip(), "userAgent": user_agent(), "referer": request.referrer},
            )
        except PyMongoError as exc:
            # the visitor still gets redirected when click tracking fails
            logger.warning("Click tracking failed for %s: %s", code, exc)
        return redirect(doc["originalUrl"], code=302)

    @bp.get("/r/<code>")
    def follow_short_link(code: str):
        return _follow(code)

    @bp.get("/<code>")
    def follow_bare_short_link(code: str):
        if code in url_shortener.RESERVED_PATHS:
            raise NotFound("Not found")
        return _follow(code)
