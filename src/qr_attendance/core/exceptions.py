class DomainError(Exception):
    """Base exception for expected, typed outcomes of engine operations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a code or session id does not resolve."""


class ExpiredError(DomainError):
    """Raised when a session's window has elapsed."""


class AlreadyMarkedError(DomainError):
    """Raised when the student is already counted in the session."""


class ConflictError(DomainError):
    """Raised on a code collision or when marking retries are exhausted."""


class ForbiddenError(DomainError):
    """Raised when a caller is not the owner of a session."""


class UnavailableError(Exception):
    """Raised when the session store cannot be reached; callers retry with backoff."""
