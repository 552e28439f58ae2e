"""
Terminal Blog Gateway
=====================
Serves the source blog's posts as ANSI-rendered text for curl:

    curl $NEWS_URL/          latest post
    curl $NEWS_URL/3         post with page id 3 (0 = oldest)
    curl $NEWS_URL/blog      index of all posts
    curl $NEWS_URL/help      usage
    curl $NEWS_URL/?theme=light

Run: python app.py  (reads .env / environment, see config.py)
"""

import logging
import os
import sys

from flask import Blueprint, Flask, current_app, jsonify, request

from config import APP_VERSION, ConfigError, load_config
from feed_engine import FeedEngineError, FeedStore, NegativeIndex, PagePipeline, ParseError
from mail_client import MailClient
from observability import init_observability, setup_logging, traced
from subscribe import subscribe_bp

log = logging.getLogger("app")

pages_bp = Blueprint("pages", __name__)

NEGATIVE_ID_MESSAGE = "Blog pages can not have negative values"
SERVER_ERROR_MESSAGE = "Server Failed to process the request"


def _text(body: str, status: int = 200):
    return body, status, {"Content-Type": "text/plain; charset=utf-8"}


def _pipeline() -> PagePipeline:
    return current_app.extensions["pipeline"]


# ==========================
# ROUTES
# ==========================
@pages_bp.route("/")
@pages_bp.route("/<page_id>")
def news(page_id=None):
    theme = request.args.get("theme", "")
    try:
        return _text(_pipeline().page(page_id, theme))
    except NegativeIndex as e:
        log.warning(f"bad request for a blog post with negative index: {e}")
        return _text(NEGATIVE_ID_MESSAGE + "\n", 400)
    except FeedEngineError as e:
        log.error(f"failed to process the request for page {page_id!r}: {e}")
        return _text(SERVER_ERROR_MESSAGE + "\n", 500)


@pages_bp.route("/blog")
def blog():
    theme = request.args.get("theme", "")
    pipeline = _pipeline()
    try:
        return _text(pipeline.blog(theme))
    except ParseError as e:
        log.error(f"failed to build list of page entries: {e}")
        return _text(pipeline.text("", theme))


@pages_bp.route("/help")
def help_page():
    theme = request.args.get("theme", "")
    path = current_app.config["HELP_FILE"]
    try:
        with open(path, "r", encoding="utf-8") as f:
            markup = f.read()
    except OSError as e:
        log.error(f"error occurred while reading the help file {path}: {e}")
        return _text(SERVER_ERROR_MESSAGE + "\n", 500)
    return _text(_pipeline().text(markup, theme))


@pages_bp.route("/health")
def health():
    return jsonify({
        "status": "ok",
        "version": APP_VERSION,
        "entries": len(_pipeline().store),
    })


# ==========================
# APP FACTORY
# ==========================
def create_app(config=None, store=None, pipeline=None, mail_client=None) -> Flask:
    """
    Build the Flask app. Collaborators default to ones built from `config`;
    tests pass their own store, pipeline and mail client. Without a config,
    a pipeline is required.
    """
    app = Flask(__name__)

    help_file = config.help_file if config else "help.md"
    if not os.path.isabs(help_file):
        help_file = os.path.join(app.root_path, help_file)
    app.config["HELP_FILE"] = help_file

    if pipeline is None:
        if config is None:
            raise ValueError("create_app needs a config or a pipeline")
        if store is None:
            store = FeedStore(config.base_url)
        pipeline = PagePipeline(store, config.base_url, config.news_url)
    if mail_client is None and config is not None:
        mail_client = MailClient(config.mail_server_url, config.mail_server_token)

    app.extensions["pipeline"] = pipeline
    app.extensions["mail_client"] = mail_client

    app.register_blueprint(subscribe_bp)
    app.register_blueprint(pages_bp)
    init_observability(app, config)
    return app


@traced("feed.refresh")
def load_feed(store: FeedStore):
    return store.refresh()


def main() -> None:
    try:
        config = load_config()
    except ConfigError as e:
        setup_logging()
        log.error(f"configuration error: {e}")
        sys.exit(1)

    setup_logging(config.log_level)
    app = create_app(config)

    try:
        load_feed(app.extensions["pipeline"].store)
    except FeedEngineError as e:
        log.error(f"cannot serve without a feed: {e}")
        sys.exit(1)

    app.run(host="0.0.0.0", port=config.port, threaded=True)


if __name__ == "__main__":
    main()
