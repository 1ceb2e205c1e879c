"""
Exception taxonomy for the plug edge daemon.

Every failure a single device query can produce derives from
:class:`DeviceQueryError`, so the poller can isolate one plug's failure from
the rest of the cycle with a single ``except`` clause. Sink failures derive
from :class:`SinkWriteError` and are handled separately.

CHANGELOG:
- 2026-10-12: Add WriteTimeout for stalled request writes
- 2026-10-09: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations


class PlugEdgeError(Exception):
    """Base class for all errors raised by the plug edge daemon."""


class DeviceQueryError(PlugEdgeError):
    """A single device query failed; the device is skipped for this cycle."""


class TransportError(DeviceQueryError):
    """The TCP exchange with a device failed."""


class ConnectTimeout(TransportError):
    """The connection could not be established within the timeout."""


class ConnectionRefused(TransportError):
    """The device actively refused the connection."""


class WriteTimeout(TransportError):
    """The framed request could not be written within the timeout."""


class ReadTimeout(TransportError):
    """No response data arrived within the timeout."""


class EmptyResponse(TransportError):
    """The device closed the connection without sending any data."""


class ProtocolError(DeviceQueryError):
    """The response was not valid JSON or did not have the expected shape."""


class DeviceError(DeviceQueryError):
    """The device reported a non-zero error code.

    Args:
        err_code: The ``err_code`` value reported by the device.
    """

    def __init__(self, err_code: int) -> None:
        super().__init__(f"Emeter error (code {err_code})")
        self.err_code = err_code


class SinkWriteError(PlugEdgeError):
    """Writing a batch to the time-series store failed.

    Args:
        message: Human-readable description.
        status_code: HTTP status returned by the store, or ``None`` when the
            request never produced a response (connect error, timeout).
        body: Response body returned by the store, for diagnostics.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
