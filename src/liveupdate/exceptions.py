"""Custom exception hierarchy for liveupdate."""

from __future__ import annotations

from collections.abc import Iterable


class LiveUpdateError(Exception):
    """Base exception for all liveupdate errors."""


class LiveUpdateConfigError(LiveUpdateError):
    """Invalid or unknown configuration.

    Raised synchronously, before anything is sent over the connection.
    ``invalid_keys`` lists the offending option names when the failure was
    caused by unknown keys.
    """

    def __init__(self, message: str, *, invalid_keys: Iterable[str] = ()) -> None:
        self.invalid_keys = tuple(invalid_keys)
        super().__init__(message)


class LiveUpdateTransportError(LiveUpdateError):
    """WebSocket-level failure (connect failed, send while not open)."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        close_code: int | None = None,
    ) -> None:
        self.url = url
        self.close_code = close_code
        super().__init__(message)


class LiveUpdateProtocolError(LiveUpdateError):
    """Inbound frame is not valid JSON or does not match the message schema.

    The client logs and drops such frames; the session continues.
    """

    def __init__(self, message: str, *, frame: str = "") -> None:
        self.frame = frame
        super().__init__(message)


class LiveUpdateRemoteError(LiveUpdateError):
    """The remote service reported an error (``{"error": ...}`` frame).

    Non-fatal: logged by the client, no state is mutated.
    """

    def __init__(self, message: str, *, remote_message: str = "") -> None:
        self.remote_message = remote_message
        super().__init__(message)
