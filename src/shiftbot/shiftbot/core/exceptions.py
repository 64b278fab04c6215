class DomainError(Exception):
    """Base class for errors whose message is safe to show to the caller."""


class ValidationError(DomainError):
    """Raised when user input cannot be turned into a well-formed action."""


class NotFoundError(DomainError):
    """Raised when no record matches the given id or filter."""


class ForbiddenError(DomainError):
    """Raised when a caller lacks ownership or admin rights for an action."""


class InvalidStateError(DomainError):
    """Raised when an action is not valid for the record's current state."""
