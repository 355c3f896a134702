# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides the application exception hierarchy and centralized error formatting.
"""

from flask import Flask, request, jsonify
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, List, Optional, Tuple
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class CustomException(Exception):
    """Base class for custom application exceptions."""

    def __init__(self, message: str, status_code: int = 500, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type


class ValidationException(CustomException):
    """A required field is missing or a value is malformed."""

    def __init__(self, message: str, validation_errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, 400, "validation-error")
        self.validation_errors = validation_errors or []


class NotFoundException(CustomException):
    """Lookup by tracking ID or staff ID found nothing."""

    def __init__(self, message: str):
        super().__init__(message, 404, "resource-not-found")


class ConflictException(CustomException):
    """Exception for resource conflict errors."""

    def __init__(self, message: str):
        super().__init__(message, 409, "resource-conflict")


class DuplicateKeyException(ConflictException):
    """A unique index rejected the write."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class ServiceUnavailableException(CustomException):
    """The store is unreachable or could not complete the operation."""

    def __init__(self, message: str):
        super().__init__(message, 503, "service-unavailable")


class ErrorHandlerMiddleware:
    """Centralized error handling with HAL/RFC 7807 response formatting."""

    def __init__(self, app: Flask, hal_formatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CustomException)
        def handle_custom_exception(error: CustomException):
            body, status = self.handle_custom_exception(error)
            return jsonify(body), status

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error: HTTPException):
            body, status = self.handle_http_exception(error)
            return jsonify(body), status

        @self.app.errorhandler(Exception)
        def handle_generic_exception(error: Exception):
            body, status = self.handle_unexpected_error(error)
            return jsonify(body), status

    def handle_custom_exception(self, error: CustomException) -> Tuple[Dict[str, Any], int]:
        """Format an application exception as a problem document."""
        with tracer.start_as_current_span("error_handler.custom_exception") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            log = logger.error if error.status_code >= 500 else logger.warning
            log(
                f"Request failed: {error.error_type}",
                extra={
                    "extra_fields": {
                        "error_type": error.error_type,
                        "status_code": error.status_code,
                        "detail": error.message,
                        "path": request.path,
                        "method": request.method
                    }
                }
            )

            if isinstance(error, ValidationException):
                response = self.hal_formatter.format_validation_error(
                    error.message, request.path, error.validation_errors
                )
            elif isinstance(error, NotFoundException):
                response = self.hal_formatter.format_not_found_error(error.message, request.path)
            elif isinstance(error, ConflictException):
                response = self.hal_formatter.format_conflict_error(error.message, request.path)
            elif isinstance(error, ServiceUnavailableException):
                response = self.hal_formatter.format_service_unavailable_error(error.message, request.path)
            else:
                response = self.hal_formatter.format_server_error(error.message, request.path)

            return response, error.status_code

    def handle_http_exception(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """Format routing-level errors (404 on unknown paths, 405, ...)."""
        detail = str(error.description) if error.description else error.name

        logger.warning(
            f"HTTP error: {error.name}",
            extra={
                "extra_fields": {
                    "status_code": error.code,
                    "path": request.path,
                    "method": request.method
                }
            }
        )

        error_type = error.name.lower().replace(' ', '-')
        response = self.hal_formatter.builder.build_error_response(
            error_type, error.name, error.code, detail, request.path
        )
        return response, error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "extra_fields": {
                        "error_class": error.__class__.__name__,
                        "error_message": str(error),
                        "path": request.path,
                        "method": request.method
                    }
                },
                exc_info=True
            )

            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            return self.hal_formatter.format_server_error(detail, request.path), 500
