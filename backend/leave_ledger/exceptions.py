from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """A user, policy, leave record or ledger row does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND)


class InvalidArgumentError(AppError):
    """Bad date range, non-positive day count, malformed day part, etc."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InsufficientBalanceError(AppError):
    """An adjustment would drive the remaining days below zero."""

    def __init__(self, message: str = "Insufficient remaining days") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class InvalidAdjustmentError(AppError):
    """An adjustment would drive the used days below zero."""

    def __init__(self, message: str = "Used days cannot become negative") -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class RangeTooLargeError(AppError):
    """A calendar query window exceeds the configured maximum."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST)


class UnsupportedGranularityError(AppError):
    """A period grouping other than month, year or week was requested."""

    def __init__(self, granularity: object) -> None:
        super().__init__(f"Unsupported groupBy: {granularity}", status_code=status.HTTP_400_BAD_REQUEST)


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
