"""
Error taxonomy for rule operations.

Every failure raised by the service layer carries an ErrorCode tag. The HTTP
edge maps the tag to a status code; callers switch on ``exc.code`` and never
on the message text.
"""

import enum
from typing import List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse


class ErrorCode(str, enum.Enum):
    VALIDATION_FAILED = "validation_failed"
    NOT_FOUND_OR_DENIED = "not_found_or_denied"
    TEMPLATE_NOT_FOUND = "template_not_found"
    INTERNAL_FAILURE = "internal_failure"


class RulesServiceError(Exception):
    """Base class for tagged service errors."""

    code: ErrorCode = ErrorCode.INTERNAL_FAILURE

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    def to_detail(self) -> dict:
        detail = {"code": self.code.value, "message": self.message}
        if self.errors:
            detail["errors"] = self.errors
        return detail


class ValidationFailed(RulesServiceError):
    """Rule configuration is malformed or incomplete (user-correctable)."""

    code = ErrorCode.VALIDATION_FAILED


class NotFoundOrDenied(RulesServiceError):
    """Entity is absent or owned by someone else; the two are indistinguishable."""

    code = ErrorCode.NOT_FOUND_OR_DENIED


class TemplateNotFound(RulesServiceError):
    code = ErrorCode.TEMPLATE_NOT_FOUND


class InternalFailure(RulesServiceError):
    """Store or I/O fault."""

    code = ErrorCode.INTERNAL_FAILURE


STATUS_BY_CODE = {
    ErrorCode.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_FOUND_OR_DENIED: status.HTTP_404_NOT_FOUND,
    ErrorCode.TEMPLATE_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INTERNAL_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


async def rules_service_error_handler(
    request: Request, exc: RulesServiceError
) -> JSONResponse:
    """Translate a tagged service error into a JSON error response."""
    return JSONResponse(
        status_code=STATUS_BY_CODE[exc.code],
        content={"detail": exc.to_detail()},
    )
