"""
Observability Middleware

Per-request tracing attributes, request IDs and the request-completion log
line for the citizen and staff endpoints.
"""

import time
import uuid
import logging
from flask import Flask, Response, request, g
from opentelemetry import trace
from opentelemetry.instrumentation.flask import FlaskInstrumentor

REQUEST_ID_HEADER = 'X-Request-ID'
TRACE_ID_HEADER = 'X-Trace-Id'


def _request_attributes() -> dict:
    attributes = {
        "http.target": request.path,
        "civic.request_id": g.request_id
    }
    # Tracking lookups carry the citizen-facing ID in the URL
    tracking_id = (request.view_args or {}).get('tracking_id')
    if tracking_id:
        attributes["civic.tracking_id"] = tracking_id
    return attributes


def add_observability_middleware(app: Flask, instrument: bool = True):
    """
    Attach request tracing and logging hooks to the app.

    Args:
        app: Flask application
        instrument: Also apply OpenTelemetry Flask auto-instrumentation
    """
    if instrument:
        FlaskInstrumentor().instrument_app(app)

    logger = logging.getLogger(__name__)

    @app.before_request
    def start_request_context():
        g.start_time = time.perf_counter()
        g.request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        g.trace_id = None

        span = trace.get_current_span()
        if span.is_recording():
            g.trace_id = format(span.get_span_context().trace_id, "032x")
            span.set_attributes(_request_attributes())

    @app.after_request
    def log_request_completion(response: Response) -> Response:
        duration_ms = round((time.perf_counter() - g.get('start_time', time.perf_counter())) * 1000, 2)

        span = trace.get_current_span()
        if span.is_recording():
            span.set_attribute("http.duration_ms", duration_ms)

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "HTTP request completed",
            extra={
                "extra_fields": {
                    "method": request.method,
                    "path": request.path,
                    "endpoint": request.endpoint,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "request_id": g.get('request_id'),
                    "trace_id": g.get('trace_id')
                }
            }
        )

        if g.get('request_id'):
            response.headers[REQUEST_ID_HEADER] = g.request_id
        if g.get('trace_id'):
            response.headers[TRACE_ID_HEADER] = g.trace_id
        return response
