"""
Newsletter signup blueprint.

Usage in app.py:
    from subscribe import subscribe_bp
    app.register_blueprint(subscribe_bp)

The blueprint reads the MailClient from app.extensions["mail_client"].
"""

import logging
from email.utils import parseaddr

from flask import Blueprint, current_app, request

from mail_client import MailServiceError

log = logging.getLogger("subscribe")

subscribe_bp = Blueprint("subscribe", __name__)

REQUIRED_FIELDS = (
    ("email", "Email is required"),
    ("firstname", "First name is required"),
    ("lastname", "Last name is required"),
)


def validate_email(email: str) -> bool:
    _, addr = parseaddr(email)
    if not addr or "@" not in addr:
        return False
    local, _, domain = addr.rpartition("@")
    return bool(local) and bool(domain) and " " not in addr


def _text(body: str, status: int = 200):
    return body + "\n", status, {"Content-Type": "text/plain; charset=utf-8"}


@subscribe_bp.route("/subscribe", methods=["GET", "POST"])
def subscribe():
    form = request.form
    for field, message in REQUIRED_FIELDS:
        if not form.get(field, ""):
            return _text(message, 400)

    email = form["email"]
    if not validate_email(email):
        return _text("Invalid Email", 400)

    client = current_app.extensions["mail_client"]
    try:
        client.subscribe(email, form["firstname"], form["lastname"])
    except MailServiceError as e:
        log.error(f"subscription failed for {email}: {e}")
        return _text("Subscription failed", 500)

    try:
        client.send_welcome(email)
    except MailServiceError as e:
        log.warning(f"failed to send welcome email: {e}")

    return _text("Subscribed")
