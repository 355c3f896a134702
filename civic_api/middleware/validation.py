# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request validation helpers using Pydantic models.
Reads JSON or form bodies and converts Pydantic errors to problem-document entries.
"""

from flask import request
from typing import Type, Dict, Any, List, TypeVar
from pydantic import BaseModel, ValidationError
from opentelemetry import trace
import logging

from .error_handler import ValidationException

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)


def format_validation_errors(validation_error: ValidationError) -> List[Dict[str, Any]]:
    """
    Format Pydantic validation errors for API response.

    Args:
        validation_error: Pydantic ValidationError

    Returns:
        List of formatted error dictionaries
    """
    errors = []

    for error in validation_error.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field_path,
            "message": error["msg"],
            "type": error["type"],
            "input": error.get("input")
        })

    return errors


def get_request_payload() -> Dict[str, Any]:
    """
    Read the request body as a dict.

    JSON bodies are preferred; multipart and urlencoded forms (the citizen
    portal posts reports as forms) fall back to the form fields.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        payload = request.form.to_dict()
    return payload


def validate_model(model_class: Type[M], data: Any, source: str = "body") -> M:
    """
    Validate request data against a Pydantic model.

    Raises:
        ValidationException: With one entry per failing field
    """
    with tracer.start_as_current_span("validation.validate_model") as span:
        span.set_attributes({
            "validation.model": model_class.__name__,
            "validation.source": source
        })

        if not isinstance(data, dict):
            span.set_attribute("validation.result", "invalid_body")
            raise ValidationException(
                f"Request {source} must be an object",
                [{"field": source, "message": "Expected an object", "type": "type_error", "input": None}]
            )

        try:
            validated = model_class.model_validate(data)
        except ValidationError as e:
            span.set_attribute("validation.result", "validation_error")
            validation_errors = format_validation_errors(e)

            logger.warning(
                "Request validation failed",
                extra={
                    "extra_fields": {
                        "model": model_class.__name__,
                        "source": source,
                        "errors": validation_errors
                    }
                }
            )

            raise ValidationException(
                f"Request validation failed for {model_class.__name__}",
                validation_errors
            )

        span.set_attribute("validation.result", "success")
        return validated
