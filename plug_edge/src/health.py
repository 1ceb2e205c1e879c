"""
Health file writer for the edge daemon.

Writes a JSON health file at a configurable path with four fields:
- last_cycle_ts: ISO timestamp of the most recent completed poll cycle.
- last_write_ts: ISO timestamp of the most recent delivered batch.
- devices_ok: Number of plugs that answered in the last cycle.
- devices_failed: Labels of plugs that failed in the last cycle.

The file is rewritten after every cycle, so an external liveness
check can tell a stalled poll loop (stale last_cycle_ts) from a lost InfluxDB
(stale last_write_ts).

CHANGELOG:
- 2026-10-11: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from plug_edge.src.models import PollCycle


class HealthWriter:
    """Writes edge health status to a JSON file.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_cycle_ts: str | None = None
        self._last_write_ts: str | None = None
        self._devices_ok: int = 0
        self._devices_failed: list[str] = []

    def record_cycle(self, cycle: PollCycle) -> None:
        """Record the outcome of a poll cycle and write health file.

        Args:
            cycle: The cycle that just completed.
        """
        now = datetime.now(tz=UTC).isoformat()
        self._last_cycle_ts = now
        if cycle.delivered:
            self._last_write_ts = now
        self._devices_ok = len(cycle.points)
        self._devices_failed = list(cycle.failed)
        self._write()

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        data = {
            "last_cycle_ts": self._last_cycle_ts,
            "last_write_ts": self._last_write_ts,
            "devices_ok": self._devices_ok,
            "devices_failed": self._devices_failed,
        }
        self.path.write_text(json.dumps(data))
