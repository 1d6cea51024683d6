"""Standardized API error responses.

Every error leaving the API has the same envelope::

    {
        "type": "validation_error" | "client_error" | "server_error",
        "errors": [{"code": "...", "detail": "...", "attr": "field" | null}]
    }

``standard_exception_handler`` is registered as DRF's ``EXCEPTION_HANDLER``.
It wraps DRF's own handler, renders pydantic DTO validation failures as
``validation_error`` and turns anything unexpected into an opaque 500
after logging it.  Views use ``error_response`` to render domain errors in
the same shape.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.exceptions import ErrorDetail
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = structlog.get_logger(__name__)

VALIDATION_ERROR = "validation_error"
CLIENT_ERROR = "client_error"
SERVER_ERROR = "server_error"

GENERIC_SERVER_DETAIL = "Internal server error."


def error_response(
    code: str,
    detail: str,
    status_code: int,
    attr: Optional[str] = None,
) -> Response:
    """Build a single-error response in the standard envelope."""
    if status_code >= 500:
        error_type = SERVER_ERROR
    elif code == "invalid":
        error_type = VALIDATION_ERROR
    else:
        error_type = CLIENT_ERROR
    return Response(
        {
            "type": error_type,
            "errors": [{"code": code, "detail": detail, "attr": attr}],
        },
        status=status_code,
    )


def standard_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    if isinstance(exc, PydanticValidationError):
        return Response(
            {"type": VALIDATION_ERROR, "errors": _pydantic_errors(exc)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = drf_exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.error(
            "api.unhandled_exception",
            view=type(view).__name__ if view else None,
            error_type=type(exc).__name__,
            exc_info=exc,
        )
        return error_response(
            "error", GENERIC_SERVER_DETAIL, status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    if isinstance(exc, DRFValidationError):
        error_type = VALIDATION_ERROR
    elif response.status_code >= 500:
        error_type = SERVER_ERROR
    else:
        error_type = CLIENT_ERROR

    response.data = {
        "type": error_type,
        "errors": _flatten(getattr(exc, "detail", response.data)),
    }
    return response


def _flatten(detail: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    """Walk DRF's nested error structure into a flat list of errors."""
    if isinstance(detail, dict):
        errors: List[Dict[str, Any]] = []
        for key, value in detail.items():
            if key == "non_field_errors":
                child = attr
            else:
                child = f"{attr}.{key}" if attr else str(key)
            errors.extend(_flatten(value, child))
        return errors
    if isinstance(detail, list):
        errors = []
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                child = f"{attr}.{index}" if attr else str(index)
                errors.extend(_flatten(value, child))
            else:
                errors.extend(_flatten(value, attr))
        return errors
    code = detail.code if isinstance(detail, ErrorDetail) else "error"
    return [{"code": code, "detail": str(detail), "attr": attr}]


def _pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    errors = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        errors.append(
            {
                "code": "invalid",
                "detail": err.get("msg", "Invalid value."),
                "attr": loc or None,
            }
        )
    return errors
