from __future__ import annotations

from typing import Any, Optional

from fastapi import HTTPException


class AppError(HTTPException):
    """
    Base for domain errors. detail is always {"error", "message", "details"};
    main.py unwraps it into the response envelope.
    """
    status_code_default = 500
    error_code = "internal_error"

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(
            status_code=self.status_code_default,
            detail={"error": self.error_code, "message": message, "details": details},
        )
        self.message = message
        self.details = details


class ValidationFailed(AppError):
    status_code_default = 400
    error_code = "validation_error"


class Unauthorized(AppError):
    status_code_default = 401
    error_code = "unauthorized"


class Forbidden(AppError):
    status_code_default = 403
    error_code = "forbidden"


class NotFound(AppError):
    status_code_default = 404
    error_code = "not_found"


class Conflict(AppError):
    status_code_default = 409
    error_code = "conflict"


class PreconditionFailed(AppError):
    status_code_default = 400
    error_code = "precondition_failed"


class UpstreamFailure(AppError):
    status_code_default = 500
    error_code = "upstream_failure"
