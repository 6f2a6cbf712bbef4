class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class PermissionDenied(DomainError):
    """Raised when an actor lacks permission for an action.

    Also raised when the config store reports zero rows affected by a write.
    """


AuthorizationError = PermissionDenied


class WriteConflict(DomainError):
    """Raised when a mode write was based on a config version that is no longer current."""


class ConfigUnavailable(DomainError):
    """Raised when the company work config cannot be read from (or written to) the store."""


class SubscriptionDropped(DomainError):
    """Raised or reported when a change-feed subscription is lost or cannot be opened."""
