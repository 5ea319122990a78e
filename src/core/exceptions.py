"""Custom exception classes for the Roll Call API.

This module defines application-specific exceptions following Google Python
Style Guide. User-facing attendance outcomes are not exceptions; these are
raised only for system-level failures.
"""


class RollCallError(Exception):
    """Base exception for all Roll Call API errors."""

    pass


class CodeSpaceExhaustedError(RollCallError):
    """Raised when no unique attendance code could be registered."""

    def __init__(self, attempts: int):
        """Initialize the exception.

        Args:
            attempts: Number of generate/register attempts that collided.
        """
        self.attempts = attempts
        super().__init__(
            f"Could not issue a unique attendance code after {attempts} attempts"
        )


class CollaboratorError(RollCallError):
    """Raised when the roster service fails while serving a request."""

    def __init__(self, operation: str, message: str = ""):
        """Initialize the exception.

        Args:
            operation: Name of the roster operation that failed.
            message: Optional detail about the failure.
        """
        self.operation = operation
        detail = f"Roster operation '{operation}' failed"
        if message:
            detail = f"{detail}: {message}"
        super().__init__(detail)


class CollaboratorTimeoutError(CollaboratorError):
    """Raised when the roster service does not answer in time."""

    def __init__(self, operation: str, timeout: float):
        self.timeout = timeout
        super().__init__(operation, f"timed out after {timeout:.1f}s")


class StudentNotOnRosterError(RollCallError):
    """Raised when a student is not enrolled in the class of a code."""

    def __init__(self, student_id: str, class_name: str):
        self.student_id = student_id
        self.class_name = class_name
        super().__init__(f"Student '{student_id}' is not on the roster of '{class_name}'")

