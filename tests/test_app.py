"""
tests/test_app.py — HTTP surface end to end
============================================
Flask test client over a real PagePipeline, a FeedStore built from fixed
entries and a fake fetch function, plus the signup blueprint against a fake
mail-service session. Nothing leaves the process.

Feed: W0 (oldest), W1, W2 (newest).
    /1   -> W1
    /99  -> W2
    /-1  -> 400
    /abc -> W2

Run: pytest tests/test_app.py -v
"""

import os
import re
import sys

import pytest
import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import app as gateway
from app import create_app
from config import Config, ConfigError
from feed_engine import FeedEntry, FeedStore, FetchError, PagePipeline, ParseError
from mail_client import MailClient

ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

ENTRIES = [
    FeedEntry("W2", "https://blog.example.com/w2", "Sat, 02 Mar 2024 10:00:00 GMT"),
    FeedEntry("W0", "https://blog.example.com/w0", "Tue, 02 Jan 2024 10:00:00 GMT"),
    FeedEntry("W1", "https://blog.example.com/w1", "Fri, 02 Feb 2024 10:00:00 GMT"),
]


class FakeFetch:
    def __init__(self, fail=False):
        self.urls = []
        self.fail = fail

    def __call__(self, url):
        self.urls.append(url)
        if self.fail:
            raise FetchError(f"network request failed on get {url}")
        slug = url.rsplit("/", 1)[-1].upper()
        return f"<html><body><h1>Post {slug}</h1><p>Body of {slug}.</p></body></html>".encode()


class FakeMailResponse:
    def __init__(self, status_code=200, text="{}"):
        self.status_code = status_code
        self.text = text


class FakeMailSession:
    def __init__(self, fail_paths=()):
        self.posts = []
        self.fail_paths = fail_paths

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if any(url.endswith(p) for p in self.fail_paths):
            raise requests.ConnectionError("mail service down")
        return FakeMailResponse()


def _plain(resp):
    return ANSI_RE.sub("", resp.get_data(as_text=True))


def _make_client(entries=ENTRIES, fetch_fn=None, mail_session=None):
    store = FeedStore.from_entries(entries)
    pipeline = PagePipeline(
        store,
        base_url="https://blog.example.com",
        news_url="https://news.example.com",
        fetch_fn=fetch_fn or FakeFetch(),
    )
    mail = MailClient("https://lists.example.com", "Basic abc", session=mail_session or FakeMailSession())
    app = create_app(pipeline=pipeline, mail_client=mail)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def fetch_fn():
    return FakeFetch()


@pytest.fixture
def mail_session():
    return FakeMailSession()


@pytest.fixture
def client(fetch_fn, mail_session):
    with _make_client(fetch_fn=fetch_fn, mail_session=mail_session) as c:
        yield c


# ═══════════════════════════════════════════
# PAGES
# ═══════════════════════════════════════════

@pytest.mark.parametrize("path,slug", [
    ("/0", "W0"),
    ("/1", "W1"),
    ("/2", "W2"),
    ("/99", "W2"),
    ("/abc", "W2"),
    ("/", "W2"),
])
def test_page_resolution(client, fetch_fn, path, slug):
    r = client.get(path)
    assert r.status_code == 200
    assert fetch_fn.urls == [f"https://blog.example.com/{slug.lower()}"]
    body = _plain(r)
    assert f"Post {slug}" in body
    assert "Run curl https://news.example.com/help for usage" in body


def test_negative_page_is_client_error(client, fetch_fn):
    r = client.get("/-1")
    assert r.status_code == 400
    assert "Blog pages can not have negative values" in r.get_data(as_text=True)
    assert fetch_fn.urls == []


def test_fetch_failure_is_server_error():
    with _make_client(fetch_fn=FakeFetch(fail=True)) as c:
        r = c.get("/1")
    assert r.status_code == 500
    assert "Server Failed to process the request" in r.get_data(as_text=True)


def test_empty_feed_is_server_error():
    with _make_client(entries=[]) as c:
        assert c.get("/").status_code == 500


def test_page_is_plain_text_with_ansi(client):
    r = client.get("/1?theme=light")
    assert r.content_type.startswith("text/plain")
    assert "\x1b[" in r.get_data(as_text=True)


def test_theme_changes_styling_not_text(client):
    light = client.get("/1?theme=light").get_data(as_text=True)
    dark = client.get("/1?theme=dark").get_data(as_text=True)
    other = client.get("/1?theme=whatever").get_data(as_text=True)
    assert light != dark
    assert dark == other


# ═══════════════════════════════════════════
# BLOG INDEX + HELP + HEALTH
# ═══════════════════════════════════════════

def test_blog_index_lists_weeks_in_order(client, fetch_fn):
    r = client.get("/blog")
    assert r.status_code == 200
    body = _plain(r)
    assert "The Blog" in body
    assert body.index("Week 0") < body.index("Week 1") < body.index("Week 2")
    assert "Tue 02 Jan 2024" in body
    assert fetch_fn.urls == []


def test_blog_index_with_bad_date_renders_empty_page():
    entries = ENTRIES + [FeedEntry("broken", "https://blog.example.com/x", "someday")]
    with _make_client(entries=entries) as c:
        r = c.get("/blog")
    assert r.status_code == 200
    assert "Week" not in _plain(r)


def test_help_renders_help_file(client):
    r = client.get("/help?theme=light")
    assert r.status_code == 200
    assert "Usage" in _plain(r)


def test_huge_page_id_clamps_to_latest(client, fetch_fn):
    r = client.get("/" + "9" * 5000)
    assert r.status_code == 200
    assert fetch_fn.urls == ["https://blog.example.com/w2"]


def test_help_file_unreadable_is_server_error():
    with _make_client() as c:
        c.application.config["HELP_FILE"] = "/nonexistent/help.md"
        r = c.get("/help")
    assert r.status_code == 500
    assert "Server Failed to process the request" in r.get_data(as_text=True)


def test_health(client):
    r = client.get("/health")
    data = r.get_json()
    assert data["status"] == "ok"
    assert data["entries"] == 3


def test_timing_headers(client):
    r = client.get("/health")
    assert "X-Response-Time-Ms" in r.headers
    assert r.headers["X-Trace-Id"]


# ═══════════════════════════════════════════
# SUBSCRIBE
# ═══════════════════════════════════════════

VALID_FORM = {"email": "ada@example.com", "firstname": "Ada", "lastname": "Lovelace"}


@pytest.mark.parametrize("missing,message", [
    ("email", "Email is required"),
    ("firstname", "First name is required"),
    ("lastname", "Last name is required"),
])
def test_subscribe_requires_fields(client, mail_session, missing, message):
    form = dict(VALID_FORM, **{missing: ""})
    r = client.post("/subscribe", data=form)
    assert r.status_code == 400
    assert message in r.get_data(as_text=True)
    assert mail_session.posts == []


@pytest.mark.parametrize("email", ["not-an-email", "@example.com", "ada@"])
def test_subscribe_rejects_invalid_email(client, mail_session, email):
    r = client.post("/subscribe", data=dict(VALID_FORM, email=email))
    assert r.status_code == 400
    assert "Invalid Email" in r.get_data(as_text=True)
    assert mail_session.posts == []


def test_subscribe_forwards_subscriber_and_welcome_mail(client, mail_session):
    r = client.post("/subscribe", data=VALID_FORM)
    assert r.status_code == 200

    sub, tx = mail_session.posts
    assert sub["url"] == "https://lists.example.com/api/subscribers"
    assert sub["json"] == {
        "email": "ada@example.com",
        "name": "Ada Lovelace",
        "status": "enabled",
        "lists": [1],
    }
    assert sub["headers"]["authorization"] == "Basic abc"
    assert sub["timeout"] == 10

    assert tx["url"] == "https://lists.example.com/api/tx"
    assert tx["json"] == {"subscriber_email": "ada@example.com", "template_id": 3, "content_type": "html"}
    assert tx["timeout"] == 10


def test_subscribe_failure_is_server_error():
    session = FakeMailSession(fail_paths=("/api/subscribers",))
    with _make_client(mail_session=session) as c:
        r = c.post("/subscribe", data=VALID_FORM)
    assert r.status_code == 500
    assert len(session.posts) == 1


def test_welcome_mail_failure_still_subscribes():
    session = FakeMailSession(fail_paths=("/api/tx",))
    with _make_client(mail_session=session) as c:
        r = c.post("/subscribe", data=VALID_FORM)
    assert r.status_code == 200
    assert len(session.posts) == 2


def test_subscribe_get_runs_same_validation(client, fetch_fn, mail_session):
    r = client.get("/subscribe")
    assert r.status_code == 400
    assert "Email is required" in r.get_data(as_text=True)
    assert fetch_fn.urls == []
    assert mail_session.posts == []


# ═══════════════════════════════════════════
# APP FACTORY + STARTUP
# ═══════════════════════════════════════════

CONFIG = Config(
    base_url="https://blog.example.com",
    news_url="https://news.example.com",
    mail_server_url="https://lists.example.com",
    mail_server_token="Basic abc",
)


def test_create_app_without_config_needs_pipeline():
    with pytest.raises(ValueError):
        create_app(store=FeedStore.from_entries(ENTRIES))


def test_startup_exits_on_config_error(monkeypatch):
    def bad_config():
        raise ConfigError("BASE_URL is required")

    monkeypatch.setattr(gateway, "load_config", bad_config)
    with pytest.raises(SystemExit) as exc:
        gateway.main()
    assert exc.value.code == 1


@pytest.mark.parametrize("error", [FetchError("feed down"), ParseError("bad xml")])
def test_startup_exits_when_feed_cannot_load(monkeypatch, error):
    def failing_refresh(self):
        raise error

    def no_serve(*args, **kwargs):
        raise AssertionError("server started without a feed")

    monkeypatch.setattr(gateway, "load_config", lambda: CONFIG)
    monkeypatch.setattr(gateway, "init_observability", lambda app, config=None: None)
    monkeypatch.setattr(FeedStore, "refresh", failing_refresh)
    monkeypatch.setattr(gateway.Flask, "run", no_serve)
    with pytest.raises(SystemExit) as exc:
        gateway.main()
    assert exc.value.code == 1
