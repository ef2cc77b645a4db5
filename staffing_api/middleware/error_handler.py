"""Global exception handlers for the API."""

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger()


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(
        self,
        message: str,
        code: str = "API_ERROR",
        status_code: int = 400,
        details: dict = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class NotFoundError(APIError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str | int):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource, "id": identifier},
        )


class ValidationAPIError(APIError):
    """Validation error."""

    def __init__(self, message: str, field: str = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=422,
            details={"field": field} if field else {},
        )


class ForbiddenError(APIError):
    """Access forbidden."""

    def __init__(self, message: str = "You don't have permission to access this resource"):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
        )


class CandidateMismatchError(APIError):
    """Candidate does not meet the assignment requirements."""

    def __init__(self, assignment_id: int, candidate_id: str, failed_criteria: list[str]):
        super().__init__(
            message="Candidate does not match the assignment requirements",
            code="CANDIDATE_MISMATCH",
            status_code=422,
            details={
                "assignment_id": assignment_id,
                "candidate_id": candidate_id,
                "failed_criteria": failed_criteria,
            },
        )


class AssignmentNotAvailableError(APIError):
    """Assignment is no longer open for booking."""

    def __init__(
        self,
        assignment_id: int,
        booking_status: str,
        message: str = "Assignment is not available",
        code: str = "NOT_AVAILABLE",
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            details={"assignment_id": assignment_id, "booking_status": booking_status},
        )


class BookingConflictError(AssignmentNotAvailableError):
    """The conditional booking update matched no row: another writer won."""

    def __init__(self, assignment_id: int, expected_status: str):
        super().__init__(
            assignment_id,
            expected_status,
            message="Assignment was modified concurrently, update failed",
            code="UPDATE_FAILED",
        )


class InvalidTransitionError(APIError):
    """Status change not allowed by the state machine."""

    def __init__(
        self,
        entity: str,
        identifier: str | int,
        from_status: str,
        to_status: str,
        reason: str = None,
    ):
        message = f"Cannot move {entity} from '{from_status}' to '{to_status}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            code="INVALID_TRANSITION",
            status_code=409,
            details={
                "resource": entity,
                "id": identifier,
                "from_status": from_status,
                "to_status": to_status,
            },
        )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers."""

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        """Handle custom API errors."""
        logger.warning(
            "API error",
            code=exc.code,
            message=exc.message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": {
                    "code": exc.code,
                    "message": exc.message,
                    "details": exc.details,
                }
            },
        )

    @app.exception_handler(RequestValidationError)
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle request and Pydantic validation errors."""
        errors = jsonable_encoder(exc.errors())
        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", []))
        message = first_error.get("msg", "Validation error")

        logger.warning(
            "Validation error",
            field=field,
            message=message,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=422,
            content={
                "error": {
                    "code": "VALIDATION_ERROR",
                    "message": message,
                    "details": {"field": field, "errors": errors},
                }
            },
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        """Handle database errors."""
        logger.error(
            "Database error",
            error=str(exc),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "DATABASE_ERROR",
                    "message": "A database error occurred",
                    "details": {},
                }
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unexpected errors."""
        logger.exception(
            "Unexpected error",
            error=str(exc),
            error_type=type(exc).__name__,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "details": {},
                }
            },
        )
