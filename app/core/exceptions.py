from typing import Optional, Any


class NotimonError(Exception):
    """
    Base exception for the notifier.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ResourceNotFoundError(NotimonError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)


class AuthenticationError(NotimonError):
    """
    Raised when a webhook or trigger cannot be authenticated.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class ValidationError(NotimonError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=422, details=details)


class ConfigurationError(NotimonError):
    """
    Raised when a transport is used without its credentials.
    """
    def __init__(self, message: str = "Missing configuration", details: Optional[Any] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", status_code=500, details=details)


class TransportError(NotimonError):
    """
    Raised when a channel platform rejects or times out a send.
    """
    def __init__(self, message: str = "Transport error", details: Optional[Any] = None):
        super().__init__(message, code="TRANSPORT_ERROR", status_code=502, details=details)


class UnsupportedChannelError(NotimonError):
    """
    Raised when an operation is requested on a channel that cannot perform it.
    """
    def __init__(self, message: str = "Operation not supported by channel", details: Optional[Any] = None):
        super().__init__(message, code="UNSUPPORTED_CHANNEL", status_code=400, details=details)
