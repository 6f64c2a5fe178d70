"""
API Exception Handlers

Translate domain errors and request validation errors into the JSON error
body every endpoint shares:

    {"reason": ..., "message": ..., "violations": [{"field", "message", "type"}]}
"""

from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
import structlog

from commerce_hub.errors import CommerceError, ValidationFailure

logger = structlog.get_logger(__name__)

# Where pydantic says a value came from; not part of the field name
_LOCATIONS = {"body", "query", "path", "header", "cookie"}


def _violations(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    violations = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ()) if part not in _LOCATIONS]
        violations.append({
            "field": ".".join(loc),
            "message": error.get("msg", ""),
            "type": error.get("type", ""),
        })
    return violations


async def commerce_error_handler(request: Request, exc: CommerceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "Request failed",
            path=request.url.path,
            reason=exc.reason,
            error=exc.message,
        )
    else:
        logger.info(
            "Request rejected",
            path=request.url.path,
            reason=exc.reason,
            status_code=exc.status_code,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    failure = ValidationFailure("Request validation failed", violations=_violations(exc.errors()))
    logger.info(
        "Request rejected",
        path=request.url.path,
        reason=failure.reason,
        violations=len(failure.violations),
    )
    return JSONResponse(status_code=failure.status_code, content=failure.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error", path=request.url.path, error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"reason": "internal_error", "message": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CommerceError, commerce_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
