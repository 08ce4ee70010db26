"""Domain errors raised by the service layer.

The API layer maps these onto HTTP responses; background tasks log them and
fold them into their result summaries.
"""


class TasteBuddyError(Exception):
    """Base class for all domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TasteBuddyError):
    """A requested entity (recipe, item, markets of a city) does not exist."""

    status_code = 404


class ValidationError(TasteBuddyError):
    """Input is missing a required field or is otherwise malformed."""

    status_code = 422


class SourceUnavailable(TasteBuddyError):
    """A discount source failed or timed out for a market."""

    status_code = 502

    def __init__(self, message: str, market_id: int | None = None):
        super().__init__(message)
        self.market_id = market_id


class PersistenceError(TasteBuddyError):
    """A database read or write failed."""

    status_code = 500
