"""Structured error codes for API responses.

Usage:
    from recordgate.core.errors import api_error, E

    raise api_error(404, E.COLLECTION_NOT_FOUND)
    raise validation_error(E.FIELD_NOT_FOUND, 'The collection does not have a field named "ips".', {"field": "ips"})

Every failure the handlers produce falls into one of four kinds:

- validation (400): malformed or missing input, safe to echo the field and value
- not found (404): the referenced collection is absent or not auth-capable
- unauthorized (401): identity or address check failed, uniform message
- internal (500): a collaborator failed during an otherwise authorized operation
"""
from enum import Enum
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    """All API error codes."""

    # ── Validation ────────────────────────────────────────────
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_BODY = "INVALID_BODY"
    FIELD_NOT_FOUND = "FIELD_NOT_FOUND"

    # ── Lookup ────────────────────────────────────────────────
    COLLECTION_NOT_FOUND = "COLLECTION_NOT_FOUND"

    # ── Auth ──────────────────────────────────────────────────
    AUTH_FAILED = "AUTH_FAILED"
    TOKEN_REQUIRED = "TOKEN_REQUIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    SUPERUSER_REQUIRED = "SUPERUSER_REQUIRED"

    # ── Generic ───────────────────────────────────────────────
    TOKEN_ISSUE_FAILED = "TOKEN_ISSUE_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Shorthand alias
E = ErrorCode

# Default human-readable messages per code
_DEFAULT_MESSAGES: dict[str, str] = {
    E.VALIDATION_ERROR: "Invalid request data",
    E.INVALID_BODY: "Request body must be a JSON object",
    E.COLLECTION_NOT_FOUND: "Missing or invalid auth collection context",
    E.AUTH_FAILED: "Failed to authenticate",
    E.TOKEN_REQUIRED: "The request requires a valid authorization token",
    E.INVALID_TOKEN: "Invalid or expired token",
    E.SUPERUSER_REQUIRED: "The request requires valid superuser authorization",
    E.TOKEN_ISSUE_FAILED: "Failed to issue an auth token",
    E.INTERNAL_ERROR: "Internal error",
}


def error_body(code: ErrorCode, detail: str | None = None, data: Any = None) -> dict:
    """Build the JSON payload shared by every error response."""
    body = {"detail": detail or _DEFAULT_MESSAGES.get(code, code.value), "code": code.value}
    if data is not None:
        body["data"] = data
    return body


def api_error(
    status_code: int,
    code: ErrorCode,
    detail: str | None = None,
    data: Any = None,
    headers: dict[str, str] | None = None,
) -> HTTPException:
    """Create an HTTPException with a structured error code.

    Args:
        status_code: HTTP status code (400, 401, 404, 500, ...)
        code: ErrorCode enum value
        detail: Human-readable message. If None, uses default for the code.
        data: Optional extra payload (offending field / value).
        headers: Optional response headers.

    Returns:
        HTTPException with JSON body {"detail": {"detail": "...", "code": "ERROR_CODE"}}
    """
    return HTTPException(
        status_code=status_code,
        detail=error_body(code, detail, data),
        headers=headers,
    )


def validation_error(code: ErrorCode, detail: str | None = None, data: Any = None) -> HTTPException:
    return api_error(status.HTTP_400_BAD_REQUEST, code, detail, data)


def not_found_error(code: ErrorCode = E.COLLECTION_NOT_FOUND, detail: str | None = None) -> HTTPException:
    return api_error(status.HTTP_404_NOT_FOUND, code, detail)


def unauthorized_error() -> HTTPException:
    """Identity and address failures all look the same to the caller."""
    return api_error(status.HTTP_401_UNAUTHORIZED, E.AUTH_FAILED)


def internal_error(code: ErrorCode = E.INTERNAL_ERROR, detail: str | None = None) -> HTTPException:
    return api_error(status.HTTP_500_INTERNAL_SERVER_ERROR, code, detail)


def _field_name(loc: tuple) -> str | None:
    # ("body", "identityField") -> "identityField"; ("body",) -> None
    if loc and loc[0] == "body":
        loc = loc[1:]
    return ".".join(str(p) for p in loc) or None


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report the first invalid body field as a 400 validation error."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = _field_name(tuple(first.get("loc", ())))

    if field is None or first.get("type") == "json_invalid":
        body = error_body(E.INVALID_BODY)
    else:
        message = str(first.get("msg", "invalid value"))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        body = error_body(
            E.VALIDATION_ERROR,
            f"Invalid `{field}` field: {message}.",
            {"field": field, "value": jsonable_encoder(first.get("input"))},
        )

    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": body})
