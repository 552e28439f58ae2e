"""
mail_client.py — Mailing-list service client (listmonk-compatible API)

    POST {MAIL_SERVER_URL}/api/subscribers   add a subscriber to list 1
    POST {MAIL_SERVER_URL}/api/tx            transactional welcome mail

Both calls are synchronous with a 10 second timeout and send the configured
token verbatim in the authorization header.
"""

import logging
from typing import Any, Dict

import requests

log = logging.getLogger("mail")

TIMEOUT_SECONDS = 10
LIST_ID = 1
WELCOME_TEMPLATE_ID = 3


class MailServiceError(Exception):
    """Request to the mailing-list service could not be completed."""


def subscriber_payload(email: str, first_name: str, last_name: str) -> Dict[str, Any]:
    return {
        "email": email,
        "name": f"{first_name} {last_name}",
        "status": "enabled",
        "lists": [LIST_ID],
    }


def welcome_payload(email: str) -> Dict[str, Any]:
    return {
        "subscriber_email": email,
        "template_id": WELCOME_TEMPLATE_ID,
        "content_type": "html",
    }


class MailClient:
    def __init__(self, base_url: str, token: str, session=None) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.session = session or requests.Session()

    def _post(self, path: str, payload: Dict[str, Any]) -> requests.Response:
        url = f"{self.base_url}{path}"
        headers = {
            "authorization": self.token,
            "content-type": "application/json",
        }
        try:
            resp = self.session.post(url, json=payload, headers=headers, timeout=TIMEOUT_SECONDS)
        except requests.RequestException as e:
            raise MailServiceError(f"impossible to send request to {url}: {e}") from e
        log.info(f"status code: {resp.status_code}")
        log.info(f"res body: {resp.text}")
        return resp

    def subscribe(self, email: str, first_name: str, last_name: str) -> requests.Response:
        return self._post("/api/subscribers", subscriber_payload(email, first_name, last_name))

    def send_welcome(self, email: str) -> requests.Response:
        return self._post("/api/tx", welcome_payload(email))
