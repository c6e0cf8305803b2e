from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from . import config
from .routes import BLUEPRINTS
from .utils.responses import INTERNAL_ERROR, json_error

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = Flask(__name__)
app.secret_key = config.SECRET_KEY
app.config["SESSION_COOKIE_NAME"] = config.SESSION_COOKIE_NAME
app.config["PERMANENT_SESSION_LIFETIME"] = timedelta(days=config.SESSION_LIFETIME_DAYS)

for blueprint in BLUEPRINTS:
    app.register_blueprint(blueprint)

logger = logging.getLogger(__name__)


@app.errorhandler(404)
def handle_not_found(exc):
    return json_error("Not found", 404)


@app.errorhandler(405)
def handle_method_not_allowed(exc):
    return json_error("Method not allowed", 405)


@app.errorhandler(Exception)
def handle_unexpected_error(exc: Exception):
    if isinstance(exc, HTTPException):
        return json_error(exc.description or exc.name, exc.code or 500)
    logger.exception("Unhandled error while processing request")
    return json_error(INTERNAL_ERROR, 500)


@app.get("/api/health")
def health():
    return jsonify({"ok": True})


if __name__ == "__main__":
    app.run(debug=True)
