"""
observability.py — Logging, tracing and error tracking
======================================================
Covers: stdlib logging setup, OpenTelemetry tracing (OTLP export when
OTLP_ENDPOINT is set), Sentry error tracking (when SENTRY_DSN is set),
per-request timing headers and JSON access lines.

Setup in app.py:
    from observability import init_observability
    init_observability(app, config)
"""

import json
import logging
import os
import time
import uuid
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Dict

from flask import g, request

# ── OpenTelemetry: distributed tracing ──
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

# ── Sentry: error tracking ──
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration

from config import APP_VERSION

log = logging.getLogger("obs")

SERVICE_NAME = "terminal-blog"
SLOW_REQUEST_MS = 1000


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format="%(asctime)s %(message)s")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def log_json_line(event: str, payload: Dict[str, Any]) -> None:
    record = {"event": event, "ts": utc_now_iso(), **payload}
    log.info(json.dumps(record, ensure_ascii=False))


def init_tracing() -> None:
    resource = Resource.create({"service.name": SERVICE_NAME, "service.version": APP_VERSION})
    provider = TracerProvider(resource=resource)

    otlp_endpoint = os.getenv("OTLP_ENDPOINT")
    if otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
        log.info(f"[OBS] OTLP trace export to {otlp_endpoint}")

    trace.set_tracer_provider(provider)


def init_sentry(config) -> None:
    if not config.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=config.sentry_dsn,
        integrations=[FlaskIntegration()],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_RATE", "0.1")),
        environment=config.environment,
        release=APP_VERSION,
    )
    log.info("[OBS] Sentry initialized")


def init_observability(app, config=None) -> None:
    """Request timing for `app`; tracing and Sentry when config is given."""
    if config is not None:
        init_tracing()
        init_sentry(config)

    @app.before_request
    def _start_timer():
        g.start_time = time.time()
        g.trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4())[:16])

    @app.after_request
    def _record_request(response):
        if hasattr(g, "start_time"):
            latency = int((time.time() - g.start_time) * 1000)
            response.headers["X-Response-Time-Ms"] = str(latency)
            response.headers["X-Trace-Id"] = getattr(g, "trace_id", "")
            log_json_line("slow_request" if latency > SLOW_REQUEST_MS else "request", {
                "trace_id": getattr(g, "trace_id", ""),
                "path": request.path,
                "method": request.method,
                "status": response.status_code,
                "latency_ms": latency,
            })
        return response


def traced(name: str = None):
    """Decorator: run the function inside an OpenTelemetry span."""
    def decorator(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            tracer = trace.get_tracer(SERVICE_NAME)
            with tracer.start_as_current_span(name or f.__name__) as span:
                span.set_attribute("function", f.__name__)
                try:
                    result = f(*args, **kwargs)
                    span.set_attribute("status", "ok")
                    return result
                except Exception as e:
                    span.set_attribute("status", "error")
                    span.record_exception(e)
                    raise
        return wrapper
    return decorator
