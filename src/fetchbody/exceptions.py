import typing


class FetchBodyError(Exception):
    """Base error type for 'fetchbody' which carries the
    encapsulated error if this error wraps a different exception.
    """

    def __init__(self, message: str, error: typing.Optional[Exception] = None):
        super().__init__(message)

        self.message = message
        self.error = error


class SizeLimitExceeded(FetchBodyError):
    """Error raised when a body stream yields more data than
    the 'max_bytes' allowed for a single collection.
    """

    def __init__(self, limit: int, error: typing.Optional[Exception] = None):
        super().__init__(f'Content size has reached the limit "{limit}".', error=error)
        self.limit = limit


class PrematureClose(FetchBodyError):
    """Error raised when a body stream stops yielding data
    without ever reaching its natural end.
    """

    def __init__(self, error: typing.Optional[Exception] = None):
        super().__init__("Premature close of body stream.", error=error)


class BufferConstructionError(FetchBodyError):
    """Error raised when the collected chunks can't be joined into one buffer"""

    def __init__(self, cause: str, error: typing.Optional[Exception] = None):
        super().__init__(
            f"Could not create buffer from body stream. Error: {cause}.", error=error
        )
        self.cause = cause
