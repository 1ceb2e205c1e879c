"""
Edge daemon main loop for the plug-to-InfluxDB energy pipeline.

Runs a single sequential asyncio loop: each iteration asks the Poller to
query every configured plug and write the resulting batch to InfluxDB, then
waits for the poll interval. An exception in one iteration is logged and
never crashes the loop. Graceful shutdown on SIGTERM/SIGINT sets a shared
asyncio.Event; the loop finishes its current cycle and exits.

Structured JSON logging is used for all events. An optional HealthWriter
records the outcome of every cycle in a JSON health file.

CHANGELOG:
- 2026-10-12: Add LOG_LEVEL and optional health file
- 2026-10-11: Initial creation (STORY-010)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import logging
import signal
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from plug_edge.src.health import HealthWriter

if TYPE_CHECKING:
    from plug_edge.src.models import PollCycle
    from plug_edge.src.poller import Poller

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the edge daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.

    Args:
        level: Root log level name.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_token(value: str | None) -> str:
    """Return a short non-reversible token fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup, excluding secrets.

    Logs the plug list, intervals, timeouts and InfluxDB target but
    deliberately omits influxdb_token (only a fingerprint is logged).

    Args:
        settings: An EdgeSettings instance (or any object with the same attrs).
    """
    devices = settings.devices  # type: ignore[union-attr]
    logger.info(
        "Starting HS110 poller: %d plug(s) [%s], "
        "poll_interval=%ss, device_port=%s, device_timeout_s=%s, "
        "influxdb_url=%s, influxdb_org=%s, influxdb_bucket=%s, "
        "influxdb_timeout_s=%s, health_path=%s, influxdb_token_masked=%s",
        len(devices),
        ", ".join(f"{d.label}={d.host}" for d in devices),
        settings.poll_interval,  # type: ignore[union-attr]
        settings.device_port,  # type: ignore[union-attr]
        settings.device_timeout_s,  # type: ignore[union-attr]
        settings.influxdb_url,  # type: ignore[union-attr]
        settings.influxdb_org,  # type: ignore[union-attr]
        settings.influxdb_bucket,  # type: ignore[union-attr]
        settings.influxdb_timeout_s,  # type: ignore[union-attr]
        settings.health_path or "disabled",  # type: ignore[union-attr]
        _masked_token(settings.influxdb_token),  # type: ignore[union-attr]
    )


# ---------------------------------------------------------------------------
# Single-iteration function (easily testable)
# ---------------------------------------------------------------------------


async def _poll_once(
    *,
    poller: Poller,
    health: HealthWriter | None,
) -> PollCycle | None:
    """Execute a single poll cycle.

    Catches all exceptions so that the caller's loop is never broken.
    After each cycle the health writer records its outcome.

    Args:
        poller: The plug fleet poller.
        health: HealthWriter instance, or None to skip health writes.

    Returns:
        The completed PollCycle, or None if the cycle raised.
    """
    try:
        cycle = await poller.poll_cycle()
    except Exception:
        logger.error("Poll cycle error", exc_info=True)
        return None

    logger.info(
        "Cycle %d: %d ok, %d failed, delivered=%s",
        cycle.timestamp,
        len(cycle.points),
        len(cycle.failed),
        cycle.delivered,
    )

    if health is not None:
        try:
            health.record_cycle(cycle)
        except Exception:
            logger.warning("Failed to write health file", exc_info=True)

    return cycle


# ---------------------------------------------------------------------------
# Loop runner
# ---------------------------------------------------------------------------


async def run_loop(
    *,
    poller: Poller,
    poll_interval_s: float,
    shutdown_event: asyncio.Event,
    health: HealthWriter | None = None,
    max_cycles: int | None = None,
) -> int:
    """Run poll cycles until shutdown_event is set.

    Executes _poll_once, then sleeps for poll_interval_s, checking the
    shutdown event between iterations.

    Args:
        poller: The plug fleet poller.
        poll_interval_s: Seconds between poll cycles.
        shutdown_event: Event to signal graceful shutdown.
        health: HealthWriter instance, or None to skip health writes.
        max_cycles: Stop after this many cycles; None runs until shutdown.

    Returns:
        Number of cycles executed.
    """
    logger.info("Poll loop started (interval=%ss)", poll_interval_s)
    cycles = 0
    while not shutdown_event.is_set():
        await _poll_once(poller=poller, health=health)
        cycles += 1
        if max_cycles is not None and cycles >= max_cycles:
            break
        # Use wait with timeout so we can check shutdown between sleeps
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(
                shutdown_event.wait(),
                timeout=poll_interval_s,
            )
    logger.info("Poll loop stopped after %d cycle(s)", cycles)
    return cycles


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, run the loop.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    from plug_edge.src.client import DeviceClient
    from plug_edge.src.config import EdgeSettings
    from plug_edge.src.poller import Poller
    from plug_edge.src.sink import MetricSink

    configure_logging()
    settings = EdgeSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    poller = Poller(
        devices=settings.devices,
        client=DeviceClient(timeout_s=settings.device_timeout_s),
        sink=MetricSink(
            base_url=settings.influxdb_url,
            token=settings.influxdb_token,
            org=settings.influxdb_org,
            bucket=settings.influxdb_bucket,
            timeout_s=settings.influxdb_timeout_s,
        ),
    )

    health = HealthWriter(settings.health_path) if settings.health_path else None

    await run_loop(
        poller=poller,
        poll_interval_s=settings.poll_interval,
        shutdown_event=shutdown_event,
        health=health,
    )
    logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the edge daemon."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
