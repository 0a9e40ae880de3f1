"""Problem+JSON utilities and global exception handlers.

Defines the RFC7807 media type, a constructor for problem responses and the
handler callables registered on the FastAPI application.
"""

from __future__ import annotations

from typing import Any
import logging
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

PROBLEM_MEDIA_TYPE = "application/problem+json"

logger = logging.getLogger(__name__)


def problem_response(status: int, title: str, detail: str = "", **extra: Any) -> JSONResponse:
    """Return an application/problem+json response."""
    problem: dict[str, Any] = {"title": title, "status": status}
    if detail:
        problem["detail"] = detail
    problem.update(extra)
    logger.info("error_handler.handle status=%s code=%s", status, extra.get("code"))
    return JSONResponse(jsonable_encoder(problem), status_code=status, media_type=PROBLEM_MEDIA_TYPE)


async def handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:  # noqa: D401
    status = int(getattr(exc, "status_code", 500) or 500)
    detail = exc.detail
    if isinstance(detail, dict):
        body = {"status": status, **detail}
        body.setdefault("title", "Error")
        return JSONResponse(jsonable_encoder(body), status_code=status, media_type=PROBLEM_MEDIA_TYPE, headers=exc.headers)
    return problem_response(status, "Error", str(detail or ""))


async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:  # noqa: D401
    return problem_response(
        422,
        "Invalid Request",
        "Request validation failed",
        code="REQUEST_INVALID",
        errors=list(exc.errors()),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:  # noqa: D401
    logger.error("unexpected_error path=%s", request.url.path, exc_info=exc)
    return JSONResponse({"title": "Internal Server Error", "status": 500}, status_code=500, media_type=PROBLEM_MEDIA_TYPE)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "problem_response",
    "handle_http_exception",
    "handle_request_validation_error",
    "handle_unexpected_error",
]
