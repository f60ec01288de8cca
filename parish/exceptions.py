"""Domain-specific exceptions with user-ready messages."""


class ConfigurationError(Exception):
    """Raised when application configuration is invalid."""

    pass


class CacheTagsNotSupported(Exception):
    """Raised by cache stores that cannot group entries by tag."""

    pass


class BusinessLogicException(Exception):
    """Base exception class for business logic errors."""

    def __init__(self, message: str, error_code: str) -> None:
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class RecordNotFoundException(BusinessLogicException):
    """Exception raised when a requested record is not found."""

    def __init__(self, resource_type: str, identifier: str | int) -> None:
        message = f"{resource_type} {identifier} was not found"
        super().__init__(message, error_code="RECORD_NOT_FOUND")


class ResourceConflictException(BusinessLogicException):
    """Exception raised when attempting to create a resource that already exists."""

    def __init__(self, resource_type: str, identifier: str | int) -> None:
        message = f"A {resource_type.lower()} with {identifier} already exists"
        super().__init__(message, error_code="RESOURCE_CONFLICT")


class InvalidOperationException(BusinessLogicException):
    """Exception raised when an operation cannot be performed due to business rules."""

    def __init__(self, operation: str, cause: str) -> None:
        self.operation = operation
        self.cause = cause
        message = f"Cannot {operation} because {cause}"
        super().__init__(message, error_code="INVALID_OPERATION")


class ValidationException(BusinessLogicException):
    """Exception raised for request validation failures."""

    def __init__(self, message: str) -> None:
        super().__init__(message, error_code="VALIDATION_FAILED")


class ImportFailedException(BusinessLogicException):
    """Exception raised when a member import cannot be completed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Import failed: {message}", error_code="IMPORT_FAILED")


class ExportFailedException(BusinessLogicException):
    """Exception raised when a member export cannot be produced."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Export failed: {message}", error_code="EXPORT_FAILED")
