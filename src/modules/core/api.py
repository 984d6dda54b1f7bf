"""Translation of domain errors into HTTP responses.

Views catch ``DomainError`` around every service call and hand it to
``error_response``; anything else propagates to DRF untouched.
"""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.response import Response

from modules.core.exceptions import Conflict, DomainError, NotFound


def error_response(exc: DomainError) -> Response:
    """404 for missing entities, 409 for stock conflicts, 400 otherwise."""
    if isinstance(exc, NotFound):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, Conflict):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return Response({"detail": str(exc)}, status=code)


def validation_error_response(exc: PydanticValidationError | ValueError) -> Response:
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def require(data: Mapping[str, Any], field: str) -> Any:
    """Return ``data[field]`` or raise ``ValueError`` naming the field."""
    value = data.get(field)
    if value is None or value == "":
        raise ValueError(f"Field '{field}' is required.")
    return value
