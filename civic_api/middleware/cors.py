# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS (Cross-Origin Resource Sharing) middleware.
Lets the citizen portal and the staff dashboard call the API from their own origins.
"""

from flask import Flask, Response, request, make_response
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

DEV_SERVER_ORIGINS = [
    'http://localhost:3000',
    'http://localhost:5173',
    'http://127.0.0.1:3000',
    'http://127.0.0.1:5173'
]

DEFAULT_METHODS = ['GET', 'POST', 'OPTIONS', 'HEAD']
DEFAULT_REQUEST_HEADERS = ['Accept', 'Content-Type', 'X-Requested-With', 'X-Request-ID']
DEFAULT_EXPOSED_HEADERS = ['Content-Type', 'X-Request-ID', 'X-Trace-Id']


def origin_allowed(origin: Optional[str], allowed_origins: List[str], allow_all: bool = False) -> bool:
    """
    Match a request origin against the allow list.

    Entries are exact origins; an entry ending in ``*`` matches by prefix
    (``https://*.city.gov`` style entries are not supported).
    """
    if not origin:
        return False
    if allow_all or origin in allowed_origins:
        return True
    return any(
        entry.endswith('*') and origin.startswith(entry[:-1])
        for entry in allowed_origins
    )


class CORSMiddleware:
    """CORS middleware for Flask applications."""

    def __init__(
        self,
        app: Flask,
        allowed_origins: Optional[List[str]] = None,
        allow_all_origins: bool = False,
        allowed_methods: Optional[List[str]] = None,
        allowed_headers: Optional[List[str]] = None,
        expose_headers: Optional[List[str]] = None,
        max_age: int = 86400  # 24 hours
    ):
        """
        Initialize CORS middleware.

        Args:
            app: Flask application
            allowed_origins: Exact origins, or prefixes ending in ``*``;
                defaults to ``CORS_ALLOWED_ORIGINS`` from the app config
            allow_all_origins: Accept any origin
            allowed_methods: List of allowed HTTP methods
            allowed_headers: List of allowed request headers
            expose_headers: List of headers to expose to client
            max_age: Preflight cache duration in seconds
        """
        self.app = app
        self.allowed_origins = (
            allowed_origins if allowed_origins is not None else self._configured_origins(app)
        )
        self.allow_all_origins = allow_all_origins
        self._headers: Dict[str, str] = {
            'Access-Control-Allow-Methods': ', '.join(allowed_methods or DEFAULT_METHODS),
            'Access-Control-Allow-Headers': ', '.join(allowed_headers or DEFAULT_REQUEST_HEADERS),
            'Access-Control-Expose-Headers': ', '.join(expose_headers or DEFAULT_EXPOSED_HEADERS),
            'Access-Control-Max-Age': str(max_age)
        }

        app.before_request(self._answer_preflight)
        app.after_request(self._decorate_response)

    @staticmethod
    def _configured_origins(app: Flask) -> List[str]:
        origins = list(app.config.get('CORS_ALLOWED_ORIGINS') or [])
        if app.config.get('ENVIRONMENT') == 'development':
            origins.extend(DEV_SERVER_ORIGINS)
        return origins

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        return origin_allowed(origin, self.allowed_origins, self.allow_all_origins)

    def add_cors_headers(self, response: Response, origin: str) -> Response:
        """Add CORS headers for an allowed origin."""
        response.headers['Access-Control-Allow-Origin'] = origin
        response.headers['Vary'] = 'Origin'
        response.headers.update(self._headers)
        return response

    def _answer_preflight(self) -> Optional[Response]:
        if request.method != 'OPTIONS':
            return None

        origin = request.headers.get('Origin')
        if not self.is_origin_allowed(origin):
            logger.warning(
                "CORS preflight rejected",
                extra={"extra_fields": {"origin": origin, "path": request.path}}
            )
            return make_response('', 403)

        return self.add_cors_headers(make_response('', 204), origin)

    def _decorate_response(self, response: Response) -> Response:
        origin = request.headers.get('Origin')
        if origin is None or 'Access-Control-Allow-Origin' in response.headers:
            return response

        if self.is_origin_allowed(origin):
            self.add_cors_headers(response, origin)
        elif request.method != 'OPTIONS':
            logger.warning(
                "CORS origin not allowed",
                extra={"extra_fields": {"origin": origin, "path": request.path}}
            )
        return response


def configure_cors(app: Flask, **kwargs) -> CORSMiddleware:
    """
    Configure CORS for Flask application.

    Args:
        app: Flask application
        **kwargs: CORS configuration options

    Returns:
        Configured CORSMiddleware instance
    """
    return CORSMiddleware(app, **kwargs)
