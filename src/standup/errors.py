"""Errors raised by storage adapters and the workflow layer."""


class StoreError(Exception):
    """Raised when the backing store rejects or fails a request."""

    pass


class AuthenticationError(StoreError):
    """Raised when authentication fails."""

    pass


class DuplicateCardError(StoreError):
    """Raised when a card already exists for the same user and date."""

    pass


class CardNotFoundError(StoreError):
    """Raised when an operation targets a card that does not exist."""

    pass
