from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """API error rendered as {"success": false, "error": {...}}.

    Subclasses only set the class attributes below; message and details are
    per raise.
    """

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_001"
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.error_code = error_code or self.code
        self.message = message or self.default_message
        self.details = details or {}

        super().__init__(
            status_code=self.http_status,
            detail={
                "success": False,
                "error": {
                    "code": self.error_code,
                    "message": self.message,
                    "details": self.details,
                },
            },
        )

    def __str__(self) -> str:
        return self.message


class AuthenticationError(BaseAPIException):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_001"
    default_message = "Authentication failed"


class ValidationError(BaseAPIException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_001"
    default_message = "Validation failed"


class NotFoundError(BaseAPIException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND_001"
    default_message = "Resource not found"


class LinkUnavailableError(BaseAPIException):
    """Link exists but is switched off or not active"""

    http_status = status.HTTP_404_NOT_FOUND
    code = "LINK_001"
    default_message = "Link is not available"


class LinkLimitReachedError(BaseAPIException):
    http_status = status.HTTP_410_GONE
    code = "LINK_002"
    default_message = "Link has reached maximum clicks"


class PayoutRejectedError(BaseAPIException):
    """Payout request refused by the ledger rules; code is the rejection reason"""

    http_status = status.HTTP_400_BAD_REQUEST
    code = "PAYOUT_001"
    default_message = "Payout rejected"

    def __init__(
        self, error_code: str, message: str, details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, details=details, error_code=error_code)


class InvalidPayoutStateError(BaseAPIException):
    http_status = status.HTTP_409_CONFLICT
    code = "PAYOUT_STATE_001"
    default_message = "Invalid payout state"


class InternalServerError(BaseAPIException):
    pass
