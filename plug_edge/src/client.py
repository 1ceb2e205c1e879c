"""
Plug client that reads realtime emeter telemetry.

Sends the fixed ``{"emeter":{"get_realtime":{}}}`` command through the
framed transport, parses the JSON reply, and validates the nested
``emeter.get_realtime`` object into a :class:`Reading`.

CHANGELOG:
- 2026-10-09: Initial creation (STORY-005)

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from plug_edge.src import transport
from plug_edge.src.errors import DeviceError, ProtocolError
from plug_edge.src.models import Device, Reading

logger = logging.getLogger(__name__)

REALTIME_REQUEST: bytes = b'{"emeter":{"get_realtime":{}}}'
"""Literal command asking a plug for its realtime emeter values."""

SendFn = Callable[[str, int, float, bytes], Awaitable[bytes]]


class DeviceClient:
    """Queries plugs for realtime telemetry.

    Args:
        timeout_s: Budget in seconds for each connect, write and read wait.
        send: Transport coroutine; defaults to :func:`transport.send`.
    """

    def __init__(
        self,
        *,
        timeout_s: float = transport.DEFAULT_TIMEOUT_S,
        send: SendFn | None = None,
    ) -> None:
        self._timeout_s = timeout_s
        self._send = send if send is not None else transport.send

    async def get_realtime(self, device: Device) -> Reading:
        """Query *device* once and return its realtime Reading.

        Raises:
            TransportError: The exchange failed (see :mod:`transport`).
            ProtocolError: The reply is not JSON or lacks the emeter object.
            DeviceError: The plug reported a non-zero ``err_code``.
        """
        raw = await self._send(
            device.host, device.port, self._timeout_s, REALTIME_REQUEST
        )
        logger.debug("[%s] Raw response: %r", device.label, raw)
        return parse_realtime(raw)


def parse_realtime(raw: bytes) -> Reading:
    """Parse a decrypted ``get_realtime`` reply into a Reading.

    Args:
        raw: Decrypted response body.

    Raises:
        ProtocolError: *raw* is not a JSON object containing an
            ``emeter.get_realtime`` object with the expected fields.
        DeviceError: ``err_code`` is present and non-zero.
    """
    try:
        data: Any = json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ProtocolError(f"Response is not valid JSON: {exc}") from exc

    realtime = _dig(data, "emeter", "get_realtime")
    if not isinstance(realtime, dict):
        raise ProtocolError("Response has no emeter.get_realtime object")

    err_code = realtime.get("err_code", 0)
    if err_code != 0:
        raise DeviceError(err_code)

    try:
        return Reading.model_validate(realtime)
    except ValidationError as exc:
        raise ProtocolError(f"Malformed realtime object: {exc}") from exc


def _dig(data: Any, *keys: str) -> Any:
    """Follow *keys* through nested dicts, returning None on any miss."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data
