from __future__ import annotations


class GameError(Exception):
    """Base class for every error raised by the casino core."""


class MalformedToken(GameError, ValueError):
    """Token does not split into the expected number of fields."""


class InvalidField(GameError, ValueError):
    """A token field is outside its allowed vocabulary."""


class StateConflict(GameError):
    """Session is not in the state the caller expected."""


class InsufficientFunds(GameError):
    pass


class InvalidAmount(GameError, ValueError):
    pass


class ParseError(GameError, ValueError):
    """User-entered text could not be read as an amount."""


class NotFound(GameError, LookupError):
    pass


class OwnershipMismatch(GameError):
    """Acting user is not the user the token was issued to."""
