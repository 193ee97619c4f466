"""
api/errors.py -- Rendering of core.errors.AppError into the error envelope.

Every error response has the same shape so clients can parse failures
without inspecting status codes first:

    {"error": {"code": "bad_credentials", "message": "Invalid credentials."}}

The global AppError handler in api/main.py and the login route (which adds
Cache-Control: no-store) both go through error_response().
"""

from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse
from core.errors import AppError


def error_response(exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=exc.code, message=exc.message, detail=exc.detail),
        ).model_dump(exclude_none=True),
    )
