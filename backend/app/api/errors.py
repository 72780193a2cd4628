"""Request validation failures are client errors: answer 400, not 422."""
from __future__ import annotations

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


def _describe(error: dict) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
    message = error.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(error.get("loc", ())[:1] == ("path",) for error in errors):
        detail = "Invalid user ID"
    else:
        detail = "Invalid request data: " + "; ".join(_describe(error) for error in errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})
