"""
Shared test fixtures for edge daemon tests.

Provides environment variable fixtures for EdgeSettings configuration tests
and a loopback plug server for transport and client tests. All edge env vars
are cleaned before each test to ensure isolation.

CHANGELOG:
- 2026-10-10: Add loopback plug server fixture
- 2026-10-09: Initial creation (STORY-001)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

import pytest

# All EdgeSettings environment variable names, used for cleanup.
_ALL_EDGE_ENV_VARS = (
    "HS110_HOSTS",
    "INFLUXDB_URL",
    "INFLUXDB_TOKEN",
    "INFLUXDB_ORG",
    "INFLUXDB_BUCKET",
    "POLL_INTERVAL",
    "DEVICE_PORT",
    "DEVICE_TIMEOUT_S",
    "INFLUXDB_TIMEOUT_S",
    "HEALTH_PATH",
    "LOG_LEVEL",
)

Handler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


@pytest.fixture(autouse=True)
def _clean_edge_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all edge env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_EDGE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for EdgeSettings.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "HS110_HOSTS": "rack:192.168.1.1,desk:10.0.0.2",
        "INFLUXDB_URL": "http://influx.lan:8086",
        "INFLUXDB_TOKEN": "test-influx-token",
        "INFLUXDB_ORG": "home",
        "INFLUXDB_BUCKET": "energy",
        "POLL_INTERVAL": "30",
        "DEVICE_PORT": "9998",
        "DEVICE_TIMEOUT_S": "2.5",
        "INFLUXDB_TIMEOUT_S": "3",
        "HEALTH_PATH": "/tmp/plug-health.json",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones).

    Optional variables should fall back to their defaults.
    """
    env = {
        "HS110_HOSTS": "rack:192.168.1.1",
        "INFLUXDB_URL": "https://influx.example.com",
        "INFLUXDB_TOKEN": "influx-token-xyz",
        "INFLUXDB_ORG": "myorg",
        "INFLUXDB_BUCKET": "mybucket",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def plug_server() -> Callable[[Handler], contextlib.AbstractAsyncContextManager[int]]:
    """Return a factory that serves *handler* on a loopback port.

    Usage::

        async with plug_server(handler) as port:
            await send("127.0.0.1", port, 1.0, b"...")

    Handlers that hold the connection open should wait on their own event;
    the server is closed when the block exits.
    """

    @contextlib.asynccontextmanager
    async def _serve(handler: Handler) -> AsyncIterator[int]:
        server = await asyncio.start_server(handler, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            yield port
        finally:
            server.close()

    return _serve
