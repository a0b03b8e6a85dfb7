from typing import Any, Dict, Optional


class IGServiceException(Exception):
    """
    Base exception for client errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "internal_error",
        context: Optional[Dict[str, Any]] = None
    ):
        self.detail = detail
        self.code = code
        self.context = context or {}
        super().__init__(self.detail)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for consistent reporting."""
        return {
            "error": {
                "code": self.code,
                "message": self.detail,
                "context": self.context
            }
        }


class TransportError(IGServiceException):
    """Exception raised when the request could not be sent or the reply could not be decoded."""

    def __init__(
        self,
        detail: str = "Web service transport error",
        code: str = "transport_error",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(detail=detail, code=code, context=context)
        self.status_code = status_code
        self.original_exception = original_exception

        if status_code is not None:
            self.context["status_code"] = status_code
        # Add original exception info to context if available
        if original_exception:
            self.context["original_error"] = str(original_exception)


class ServiceError(IGServiceException):
    """
    Exception raised when the web service answers with a non-"ok" status.

    The decoded envelope is kept on ``response`` so callers can inspect
    whatever else the server sent back.
    """

    def __init__(
        self,
        detail: str = "Unknown server error",
        response: Optional[Dict[str, Any]] = None,
        code: str = "service_error",
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(detail=detail, code=code, context=context)
        self.response = response


class ValidationException(IGServiceException):
    """Exception raised when call arguments or configuration are invalid."""

    def __init__(
        self,
        detail: str = "Validation error",
        code: str = "validation_error",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        merged_context = {"field": field} if field else {}
        if context:
            merged_context.update(context)

        super().__init__(detail=detail, code=code, context=merged_context)
        self.field = field
