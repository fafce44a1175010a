"""Errors raised by the chat transport layer."""


class StreamEstablishFailure(Exception):
    """Raised when the event stream to the analysis service cannot be opened."""

    pass
