"""The HTTP server that publishes analytics data."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta

from flask import Flask, Response, redirect, request

from ..shared import handle_error, handle_http_error
from .data import Endpoint

_log = logging.getLogger(__name__)

_ROUTES = "Available routes:\n\n- GET /users\n- GET /hourly\n- GET /total"
_ALLOWED_METHODS = ("GET", "OPTIONS")


def _format_time(moment: datetime) -> str:
    """Render a time the way the published Last-Updated header has it."""
    text = (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )
    if moment.microsecond:
        text += f".{moment.microsecond:06d}".rstrip("0")
    offset = moment.utcoffset() or timedelta(0)
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    total = abs(total)
    numeric = f"{sign}{total // 3600:02d}{total % 3600 // 60:02d}"
    name = "UTC" if offset == timedelta(0) else numeric
    return f"{text} {numeric} {name}"


def create_app(data, logger) -> Flask:
    """A Flask application serving the analytics endpoints."""
    app = Flask(__name__)
    production = os.environ.get("ENV") == "production"

    @app.before_request
    def _ssl_redirect():
        if production and not request.is_secure:
            return redirect(request.url.replace("http://", "https://", 1), code=301)
        return None

    @app.after_request
    def _headers(response: Response) -> Response:
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["X-Content-Type-Options"] = "nosniff"
        if request.headers.get("Origin"):
            response.headers["Access-Control-Allow-Origin"] = "*"
            response.headers.add("Vary", "Origin")
            wanted = request.headers.get("Access-Control-Request-Method", "").upper()
            if request.method == "OPTIONS" and wanted in _ALLOWED_METHODS:
                response.headers["Access-Control-Allow-Methods"] = wanted
        return response

    def index() -> Response:
        return Response(_ROUTES, status=200, content_type="text/plain")

    app.add_url_rule("/", "index", index, methods=["GET"])

    def serve(path: str, fetch, endpoint: Endpoint) -> None:
        def view() -> Response:
            try:
                body = fetch()
                stamp = data.last_updated(endpoint)
            except Exception as error:  # noqa: BLE001
                handle_http_error(error, logger, request)
                return Response(status=500)
            return Response(
                body,
                status=200,
                content_type="application/json",
                headers={"Last-Updated": _format_time(stamp)},
            )

        app.add_url_rule(path, path.strip("/"), view, methods=["GET"])

    serve("/users", data.get_all, Endpoint.USER)
    serve("/hourly", data.get_hourly, Endpoint.HOURLY)
    serve("/total", data.get_total, Endpoint.TOTAL)
    serve("/dukun", data.get_dukun_points, Endpoint.DUKUN)
    return app


def run_server(data, logger, port: str = "8080") -> None:
    """Serve the analytics endpoints until the process ends."""
    port = port or "8080"
    _log.info("Starting server on port %s", port)
    try:
        create_app(data, logger).run(host="0.0.0.0", port=int(port))
    except OSError as error:
        handle_error(error, logger)