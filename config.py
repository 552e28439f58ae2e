"""
config.py — Environment configuration
=====================================
Values come from the process environment; a .env file in the working
directory (or any parent) is loaded first and never overrides variables
that are already set.

Required:
    BASE_URL            source blog, feed is read from {BASE_URL}/feed
    NEWS_URL            public URL of this service, shown in the usage banner
    MAIL_SERVER_URL     mailing-list service base URL
    MAIL_SERVER_TOKEN   value sent verbatim in the authorization header

Optional:
    PORT (8090), HELP_FILE (help.md), LOG_LEVEL (INFO),
    SENTRY_DSN, ENVIRONMENT (production)
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv, find_dotenv

APP_VERSION = "terminal-blog-v1.0"

REQUIRED_URLS = ("BASE_URL", "NEWS_URL", "MAIL_SERVER_URL")


class ConfigError(Exception):
    """Missing or malformed configuration. Fatal at startup."""


@dataclass(frozen=True)
class Config:
    base_url: str
    news_url: str
    mail_server_url: str
    mail_server_token: str
    port: int = 8090
    help_file: str = "help.md"
    log_level: str = "INFO"
    sentry_dsn: Optional[str] = None
    environment: str = "production"


def _require(env: Mapping[str, str], name: str) -> str:
    val = (env.get(name) or "").strip()
    if not val:
        raise ConfigError(f"{name} is required")
    return val


def _require_url(env: Mapping[str, str], name: str) -> str:
    val = _require(env, name)
    parsed = urlparse(val)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigError(f"{name} must be an http(s) URL, got {val!r}")
    return val.rstrip("/")


def load_config(env: Optional[Mapping[str, str]] = None) -> Config:
    """Build a Config from `env` (default: os.environ after loading .env)."""
    if env is None:
        load_dotenv(find_dotenv(usecwd=True))
        env = os.environ

    urls = {name: _require_url(env, name) for name in REQUIRED_URLS}
    token = _require(env, "MAIL_SERVER_TOKEN")

    port_raw = (env.get("PORT") or "8090").strip()
    try:
        port = int(port_raw)
    except ValueError:
        raise ConfigError(f"PORT must be an integer, got {port_raw!r}")
    if not 0 < port < 65536:
        raise ConfigError(f"PORT out of range: {port}")

    return Config(
        base_url=urls["BASE_URL"],
        news_url=urls["NEWS_URL"],
        mail_server_url=urls["MAIL_SERVER_URL"],
        mail_server_token=token,
        port=port,
        help_file=(env.get("HELP_FILE") or "help.md").strip(),
        log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
        sentry_dsn=(env.get("SENTRY_DSN") or "").strip() or None,
        environment=(env.get("ENVIRONMENT") or "production").strip(),
    )
