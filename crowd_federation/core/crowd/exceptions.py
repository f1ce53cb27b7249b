"""Crowd-specific exceptions for error handling."""


class CrowdError(Exception):
    """Base exception for all Crowd operations."""
    pass


class CrowdAPIError(CrowdError):
    """HTTP error from the Crowd REST API.

    Attributes:
        status_code: HTTP status code
        message: Error message from response
        endpoint: API endpoint that failed
        reason: Crowd error reason code (e.g. USER_NOT_FOUND), if any
    """

    def __init__(self, status_code: int, message: str, endpoint: str, reason: str = ""):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        self.reason = reason
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class OperationFailedError(CrowdError):
    """Crowd could not be reached or the operation failed server-side."""
    pass


class InvalidAuthenticationError(CrowdAPIError):
    """The application credentials were rejected by Crowd (HTTP 401)."""
    pass


class ApplicationPermissionError(CrowdAPIError):
    """The application is not permitted to perform the operation."""
    pass


class UserNotFoundError(CrowdAPIError):
    """User lookup failed - username does not exist."""
    pass


class GroupNotFoundError(CrowdAPIError):
    """Group does not exist in the directory."""
    pass


class InactiveAccountError(CrowdAPIError):
    """User authentication failed - account is deactivated."""
    pass


class ExpiredCredentialError(CrowdAPIError):
    """User authentication failed - password has expired."""
    pass


class InvalidUserAuthenticationError(CrowdAPIError):
    """User authentication failed - wrong username/password combination."""
    pass


# Crowd error reason codes → exception types
REASON_EXCEPTIONS = {
    "USER_NOT_FOUND": UserNotFoundError,
    "GROUP_NOT_FOUND": GroupNotFoundError,
    "INACTIVE_ACCOUNT": InactiveAccountError,
    "EXPIRED_CREDENTIAL": ExpiredCredentialError,
    "INVALID_USER_AUTHENTICATION": InvalidUserAuthenticationError,
    "APPLICATION_PERMISSION_DENIED": ApplicationPermissionError,
    "APPLICATION_ACCESS_DENIED": ApplicationPermissionError,
}
