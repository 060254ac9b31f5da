class MessagesError(Exception):
    """Base class for errors raised by the message store and search."""


class InvalidArgument(MessagesError):
    """A request field is malformed or out of range. Fix the input."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class NotFound(MessagesError):
    """A message id or a translation key does not exist."""


class StoreUnavailable(MessagesError):
    """The database failed during a read or write. Safe to retry later.

    ``stage`` tells which operation failed, e.g. ``"count"`` or ``"items"``
    for the two search reads.
    """

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(message)
        self.stage = stage
