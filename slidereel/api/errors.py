"""
API error handling and exception mapping.

Converts domain and infrastructure errors into HTTP responses.
"""

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from slidereel.api.schemas import ErrorResponse
from slidereel.domain.exceptions import DomainError
from slidereel.infra.config.logging_config import get_logger

logger = get_logger("api.errors")

STATUS_CODE_MAPPING = {
    "SLIDESHOW_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SLIDE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "PRODUCT_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "MISSING_FIELD": status.HTTP_400_BAD_REQUEST,
    "EMPTY_BACKGROUND_POOL": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "INVALID_SLIDE_COUNT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "LAST_SLIDE_DELETION": status.HTTP_409_CONFLICT,
    "INVALID_STATUS_TRANSITION": status.HTTP_409_CONFLICT,
    "SLIDESHOW_BUSY": status.HTTP_409_CONFLICT,
    "NO_OBJECT_GENERATED": status.HTTP_502_BAD_GATEWAY,
    "RENDER_ADMISSION_FAILED": status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.warning("api.domain_error", code=exc.code, detail=exc.message)
    status_code = STATUS_CODE_MAPPING.get(exc.code, status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = ErrorResponse(error=exc.code, detail=exc.message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    formatted_errors = [
        f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    logger.warning("api.validation_error", errors=formatted_errors)
    body = ErrorResponse(
        error="VALIDATION_ERROR", detail="Validation failed: " + "; ".join(formatted_errors)
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body.model_dump(mode="json"),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    logger.warning("api.http_error", status_code=exc.status_code, detail=str(exc.detail))
    body = ErrorResponse(error=f"HTTP_{exc.status_code}", detail=str(exc.detail))
    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(mode="json"),
        headers=exc.headers,
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("api.unexpected_error", error_type=type(exc).__name__, error=str(exc))
    body = ErrorResponse(
        error="INTERNAL_SERVER_ERROR",
        detail="An unexpected error occurred. Please try again later.",
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


def setup_error_handlers(app) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
