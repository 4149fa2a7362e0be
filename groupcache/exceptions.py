"""Exceptions raised by cache stores."""


class CacheError(Exception):
    """Base class for cache errors."""


class StoreServerError(CacheError):
    """The store rejected a command at the server level.

    Raised by stores for errors like a stored value whose type conflicts with
    the tag index (Redis ``WRONGTYPE``).
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
