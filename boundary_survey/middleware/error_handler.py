"""
Global error handling middleware.

Maps survey engine exceptions to JSON error bodies of the form
{"error": ..., "detail": ...}; coordinate validation errors also carry the
offending record index.
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Any, Callable

from boundary_survey.domain.errors import (
    AreaComputationError,
    CoordinateSourceError,
    CoordinateValidationError,
    SurveyPreconditionError,
)


logger = logging.getLogger(__name__)


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    detail: str,
    level: int = logging.WARNING,
    **fields: Any,
) -> JSONResponse:
    """Log a handled error and build its JSON response."""
    logger.log(
        level,
        f"{error}: {detail}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "status_code": status_code,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "detail": detail, **fields},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Catches survey engine and unexpected exceptions raised by route handlers.

    - CoordinateValidationError -> 422 with the record index
    - SurveyPreconditionError -> 409
    - CoordinateSourceError -> upstream 4xx, otherwise 502
    - AreaComputationError -> 422
    - other ValueError -> 400
    - anything else -> 500
    """

    async def dispatch(self, request: Request, call_next: Callable):
        try:
            return await call_next(request)

        except CoordinateValidationError as e:
            return _error_response(
                request,
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "Invalid coordinates",
                e.message,
                index=e.index,
            )

        except SurveyPreconditionError as e:
            return _error_response(request, status.HTTP_409_CONFLICT, "Precondition failed", e.message)

        except CoordinateSourceError as e:
            # Client errors from the source pass through; everything else is a bad gateway
            code = e.status_code if 400 <= e.status_code < 500 else status.HTTP_502_BAD_GATEWAY
            return _error_response(request, code, "Coordinate source error", e.message, logging.ERROR)

        except AreaComputationError as e:
            return _error_response(
                request,
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                "Area unavailable",
                e.message,
                logging.ERROR,
            )

        except ValueError as e:
            return _error_response(request, status.HTTP_400_BAD_REQUEST, "Invalid request", str(e))

        except Exception as e:
            logger.exception(
                f"Unhandled exception: {str(e)}",
                extra={"path": request.url.path, "method": request.method},
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "detail": "An unexpected error occurred",
                },
            )
