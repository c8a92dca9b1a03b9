"""
W3C Trace Context middleware

Every request gets a trace id, taken from an incoming traceparent or
X-Correlation-ID header when present. Emitted events and callbacks carry
it as their correlationId, so one harvest can be followed from
registration to invoicing across the three services.
"""
import uuid
import re
import logging
from typing import Optional, Tuple
from flask import Response, g, request, current_app, has_app_context

# W3C traceparent header format: 00-{trace-id}-{parent-id}-{trace-flags}
TRACEPARENT_PATTERN = re.compile(
    r'^00-([0-9a-f]{32})-([0-9a-f]{16})-[0-9a-f]{2}$'
)
CORRELATION_ID_PATTERN = re.compile(r'^[0-9a-f]{32}$')

logger = logging.getLogger(__name__)


class TraceContextMiddleware:
    """
    Flask middleware for W3C Trace Context propagation
    """

    def __init__(self, app=None):
        self.app = app
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        """Initialize the middleware with Flask app"""
        app.before_request(self.before_request)
        app.after_request(self.after_request)

    def before_request(self):
        """Extract or generate trace context before request processing"""
        trace_context = self.extract_trace_context(request.headers.get('traceparent'))
        if trace_context is None:
            correlation_id = (request.headers.get('X-Correlation-ID') or '').strip().lower()
            if CORRELATION_ID_PATTERN.match(correlation_id):
                trace_context = (correlation_id, uuid.uuid4().hex[:16])

        if trace_context is None:
            trace_context = self.generate_trace_context()
            logger.debug(f"Generated new trace context: {trace_context[0]}")

        g.trace_id, g.span_id = trace_context

        current_app.logger.info(
            f"[{g.trace_id[:16]}] {request.method} {request.path} - Processing request"
        )

    def after_request(self, response: Response) -> Response:
        """Add trace context to response headers"""
        trace_id = getattr(g, 'trace_id', None) or '0' * 32
        span_id = getattr(g, 'span_id', None) or '0' * 16

        response.headers['traceparent'] = f"00-{trace_id}-{span_id}-01"
        response.headers['X-Trace-ID'] = trace_id

        current_app.logger.info(
            f"[{trace_id[:16]}] {request.method} {request.path} - "
            f"Response: {response.status_code}"
        )
        return response

    @staticmethod
    def extract_trace_context(traceparent: Optional[str]) -> Optional[Tuple[str, str]]:
        """
        Extract (trace_id, span_id) from a traceparent header.

        Example: 00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01
        Returns None when the header is missing or invalid.
        """
        if not traceparent:
            return None

        match = TRACEPARENT_PATTERN.match(traceparent.strip())
        if not match:
            return None

        trace_id, span_id = match.group(1), match.group(2)

        # All-zero ids are invalid in W3C Trace Context
        if trace_id == '0' * 32 or span_id == '0' * 16:
            return None

        return trace_id, span_id

    @staticmethod
    def generate_trace_context() -> Tuple[str, str]:
        """New 128-bit trace id and 64-bit span id as hex strings"""
        return uuid.uuid4().hex, uuid.uuid4().hex[:16]


def get_trace_id() -> Optional[str]:
    """Current trace ID, or None outside of an app context"""
    if not has_app_context():
        return None
    return getattr(g, 'trace_id', None)
