"""
Framed request/response exchange with a plug over a fresh TCP connection.

Each call opens one connection, writes a single framed and encrypted request,
then assembles the framed response:

1. Connect (bounded by the timeout), trying each resolved address in turn.
2. Write the request and drain (bounded by the timeout).
3. Wait for the first chunk (bounded by the timeout). Its first 4 bytes are
   the declared body length; the rest is the first body fragment.
4. Keep reading until the declared length is reached, the peer closes, or a
   read wait times out.

The declared length is advisory: a body cut short by an early close or a read
timeout is decrypted and returned as-is, with a warning logged. The
connection is closed on every exit path.

CHANGELOG:
- 2026-10-13: Try every resolved address; refused on all is ConnectionRefused
- 2026-10-12: Bound the request drain by the timeout (WriteTimeout)
- 2026-10-09: Initial creation (STORY-003)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import socket

from plug_edge.src.cipher import HEADER_SIZE, decrypt, frame, unpack_length
from plug_edge.src.errors import (
    ConnectionRefused,
    ConnectTimeout,
    EmptyResponse,
    ProtocolError,
    ReadTimeout,
    TransportError,
    WriteTimeout,
)

logger = logging.getLogger(__name__)

RECV_CHUNK_SIZE: int = 4096
"""Maximum number of bytes requested per socket read."""

DEFAULT_TIMEOUT_S: float = 5.0
"""Default budget in seconds for each connect, write and read wait."""


async def send(
    host: str,
    port: int,
    timeout_s: float,
    request: bytes,
) -> bytes:
    """Send one plaintext request to a plug and return the plaintext response.

    Args:
        host: Plug IP address or hostname.
        port: Plug TCP port (normally 9999).
        timeout_s: Budget in seconds applied separately to the connect, the
            request write and every read wait.
        request: Plaintext request payload (encrypted and framed here).

    Returns:
        The decrypted response body. May be shorter than the length the
        plug declared if the body was truncated.

    Raises:
        ConnectTimeout: The connection was not established in time.
        ConnectionRefused: The plug refused the connection.
        WriteTimeout: The request could not be written in time.
        ReadTimeout: No response data arrived in time.
        EmptyResponse: The plug closed the connection without replying.
        ProtocolError: The response was too short to carry a length header.
        TransportError: Any other socket-level failure.
    """
    try:
        reader, writer = await asyncio.wait_for(
            _connect(host, port),
            timeout=timeout_s,
        )
    except TimeoutError as exc:
        raise ConnectTimeout(f"Connection to {host}:{port} timed out") from exc
    except ConnectionRefusedError as exc:
        raise ConnectionRefused(f"Connection to {host}:{port} refused") from exc
    except OSError as exc:
        raise TransportError(f"Connection to {host}:{port} failed: {exc}") from exc

    try:
        return await _exchange(reader, writer, host, timeout_s, request)
    except OSError as exc:
        raise TransportError(f"Socket error talking to {host}: {exc}") from exc
    finally:
        writer.close()
        with contextlib.suppress(OSError, TimeoutError):
            await asyncio.wait_for(writer.wait_closed(), timeout=timeout_s)


async def _connect(
    host: str, port: int
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Open a stream to the first resolved address that accepts.

    Raises:
        ConnectionRefusedError: Every resolved address refused.
        OSError: Resolution failed, or at least one attempt failed otherwise.
    """
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    if not infos:
        raise OSError(f"No addresses found for {host}")

    errors: list[OSError] = []
    for family, _type, _proto, _canonname, sockaddr in infos:
        try:
            return await asyncio.open_connection(
                sockaddr[0], sockaddr[1], family=family
            )
        except OSError as exc:
            logger.debug("Connect to %s via %s failed: %s", host, sockaddr[0], exc)
            errors.append(exc)

    if len(errors) == 1:
        raise errors[0]
    summary = ", ".join(str(exc) for exc in errors)
    if all(isinstance(exc, ConnectionRefusedError) for exc in errors):
        raise ConnectionRefusedError(f"All addresses refused: {summary}")
    raise OSError(f"Multiple exceptions: {summary}")


async def _exchange(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    host: str,
    timeout_s: float,
    request: bytes,
) -> bytes:
    """Write the framed request and assemble the framed response."""
    writer.write(frame(request))
    try:
        await asyncio.wait_for(writer.drain(), timeout=timeout_s)
    except TimeoutError as exc:
        raise WriteTimeout(f"Write timeout to {host}") from exc

    try:
        first = await asyncio.wait_for(
            reader.read(RECV_CHUNK_SIZE), timeout=timeout_s
        )
    except TimeoutError as exc:
        raise ReadTimeout(f"Read timeout from {host}") from exc

    if not first:
        raise EmptyResponse(f"Empty response from {host}")
    if len(first) < HEADER_SIZE:
        raise ProtocolError(
            f"Response from {host} too short for a length header "
            f"({len(first)} bytes)"
        )

    declared = unpack_length(first)
    body = bytearray(first[HEADER_SIZE:])

    while len(body) < declared:
        try:
            chunk = await asyncio.wait_for(
                reader.read(RECV_CHUNK_SIZE), timeout=timeout_s
            )
        except TimeoutError:
            logger.debug("Read wait expired from %s, using partial body", host)
            break
        if not chunk:
            break
        body += chunk

    if len(body) < declared:
        logger.warning(
            "Truncated response from %s: declared %d bytes, received %d",
            host,
            declared,
            len(body),
        )

    return decrypt(bytes(body[:declared]))
