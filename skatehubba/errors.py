"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    code = "APP_ERROR"

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def to_dict(self):
        """Return the JSON error body sent to API clients."""
        return {"success": False, "code": self.code, "message": self.message}


class ValidationError(AppError):
    """Raised when user input fails validation."""

    code = "VALIDATION_FAILED"

    def __init__(self, message="Validation failed."):
        """Initialize the error."""
        super().__init__(message, 400)


class AuthenticationError(AppError):
    """Raised when a request carries no valid bearer token."""

    code = "UNAUTHENTICATED"

    def __init__(self, message="Authentication required."):
        """Initialize the error."""
        super().__init__(message, 401)


class PermissionDeniedError(AppError):
    """Raised when the caller is not allowed to act on an entity."""

    code = "PERMISSION_DENIED"

    def __init__(self, message="You do not have permission to perform this action."):
        """Initialize the error."""
        super().__init__(message, 403)


class IllegalTransitionError(AppError):
    """Raised when an action is not valid for the current game state."""

    code = "INVALID_TURN"

    def __init__(self, message="This action cannot be performed right now."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    code = "NOT_FOUND"

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class ConflictError(AppError):
    """Raised when concurrent writes or a finished step block the action."""

    code = "CONFLICT"

    def __init__(self, message="The resource was modified concurrently."):
        """Initialize the error."""
        super().__init__(message, 409)


class UploadFailureError(AppError):
    """Raised when a video transfer to Cloud Storage fails."""

    code = "UPLOAD_FAILED"

    def __init__(self, message="Video upload failed.", error_code="unknown"):
        """Initialize the error."""
        super().__init__(message, 502)
        self.error_code = error_code


class TransientInfrastructureError(AppError):
    """Raised when Firestore or the network is temporarily unavailable."""

    code = "UNAVAILABLE"

    def __init__(self, message="Service temporarily unavailable. Please retry."):
        """Initialize the error."""
        super().__init__(message, 503)
