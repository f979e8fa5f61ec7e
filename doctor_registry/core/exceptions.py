"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class UnsupportedMediaTypeException(BadRequestException):
    """Uploaded file has a content type other than PDF."""

    def __init__(self, message: str = "Only PDF files are allowed!"):
        super().__init__(message)


class DuplicateKeyException(BadRequestException):
    """Email or license number already registered."""

    def __init__(
        self,
        message: str = "Duplicate entry detected. Please check your email or license number.",
        field: str | None = None,
    ):
        """Initialize with the colliding field when it is known."""
        self.field = field
        super().__init__(message)


class ValidationFailedException(BadRequestException):
    """A required field is missing or malformed."""

    def __init__(self, message: str = "Validation error", errors: list[dict] | None = None):
        """Initialize with per-field error details."""
        self.errors = errors or []
        super().__init__(message)


class MissingFileException(ValidationFailedException):
    """No license file was uploaded."""

    def __init__(self, message: str = "License file is required"):
        super().__init__(message, errors=[{"field": "licenseFile", "message": message}])


class StorageUnavailableException(BadRequestException):
    """Database or upload storage could not be reached."""

    def __init__(self, message: str = "Storage is currently unavailable"):
        super().__init__(message)
