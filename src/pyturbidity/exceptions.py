"""Custom exception hierarchy for pyturbidity."""

from __future__ import annotations


class TurbidityError(Exception):
    """Base exception for all pyturbidity errors."""


class TurbidityConfigError(TurbidityError):
    """Invalid or missing configuration."""


class TurbidityTransportError(TurbidityError):
    """HTTP-level failure (network, non-2xx, invalid JSON, dropped stream)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        path: str = "",
    ) -> None:
        self.status_code = status_code
        self.path = path
        super().__init__(message)


class TurbiditySubscriptionError(TurbidityError):
    """A realtime listener was cancelled by the store.

    Raised (or delivered to ``on_error``) when the database ends a stream
    with ``cancel`` or ``auth_revoked``.  Sibling subscriptions are not
    affected.
    """

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class TurbidityWriteError(TurbidityError):
    """Base for failures reported by the write pipeline."""


class TurbidityInvalidInputError(TurbidityWriteError):
    """The submitted value is blank or not a number.

    Detected locally, before any remote call is made.
    """

    def __init__(self, message: str, *, raw_input: str = "") -> None:
        self.raw_input = raw_input
        super().__init__(message)


class TurbidityRemoteWriteError(TurbidityWriteError):
    """A remote write step failed; the remaining steps were not attempted.

    Steps completed before the failure are *not* rolled back, so the
    ``latest`` document may already reflect the new value while the
    history or alert entry is missing.  The underlying error is
    available as ``__cause__``.
    """

    def __init__(self, message: str, *, step: str, path: str) -> None:
        self.step = step
        self.path = path
        super().__init__(message)
