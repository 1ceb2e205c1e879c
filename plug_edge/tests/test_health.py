"""
Unit tests for the edge health writer module.

Tests verify:
- HealthWriter.record_cycle() writes health.json with last_cycle_ts.
- last_write_ts only advances when the cycle's batch was delivered.
- devices_ok / devices_failed reflect the latest cycle.

CHANGELOG:
- 2026-10-11: Initial creation (STORY-009)

TODO:
- None
"""

from __future__ import annotations

import json
from pathlib import Path

from plug_edge.src.health import HealthWriter
from plug_edge.src.models import MetricPoint, PollCycle


def _make_cycle(*, ok: int = 2, failed: list[str] | None = None, delivered=True):
    """Build a PollCycle with *ok* points and the given failed labels."""
    points = [
        MetricPoint(
            tags={"plug": f"plug{i}"},
            fields={"voltage": 230.0, "current": 0.1, "power": 23.0, "total_wh": 1},
            timestamp=1_700_000_000,
        )
        for i in range(ok)
    ]
    return PollCycle(
        timestamp=1_700_000_000,
        points=points,
        failed=failed or [],
        delivered=delivered,
    )


class TestRecordCycle:
    """record_cycle() writes the full health document."""

    def test_writes_health_file(self, tmp_path: Path) -> None:
        """A recorded cycle creates health.json with all four fields."""
        health_path = tmp_path / "health.json"
        writer = HealthWriter(health_path)

        writer.record_cycle(_make_cycle(ok=2, failed=["tv"]))

        data = json.loads(health_path.read_text())
        assert set(data) == {
            "last_cycle_ts",
            "last_write_ts",
            "devices_ok",
            "devices_failed",
        }
        assert "T" in data["last_cycle_ts"]
        assert data["devices_ok"] == 2
        assert data["devices_failed"] == ["tv"]

    def test_accepts_str_path(self, tmp_path: Path) -> None:
        """HealthWriter accepts a plain string path."""
        health_path = tmp_path / "health.json"
        writer = HealthWriter(str(health_path))

        writer.record_cycle(_make_cycle())

        assert health_path.exists()


class TestLastWriteTs:
    """last_write_ts tracks delivered batches only."""

    def test_undelivered_cycle_leaves_last_write_unset(self, tmp_path: Path) -> None:
        """A cycle whose batch failed does not set last_write_ts."""
        health_path = tmp_path / "health.json"
        writer = HealthWriter(health_path)

        writer.record_cycle(_make_cycle(delivered=False))

        data = json.loads(health_path.read_text())
        assert data["last_cycle_ts"] is not None
        assert data["last_write_ts"] is None

    def test_failed_cycle_keeps_previous_write_ts(self, tmp_path: Path) -> None:
        """A later failed delivery keeps the earlier last_write_ts."""
        health_path = tmp_path / "health.json"
        writer = HealthWriter(health_path)

        writer.record_cycle(_make_cycle(delivered=True))
        first = json.loads(health_path.read_text())["last_write_ts"]
        writer.record_cycle(_make_cycle(ok=0, failed=["a", "b"], delivered=False))

        data = json.loads(health_path.read_text())
        assert first is not None
        assert data["last_write_ts"] == first
        assert data["devices_ok"] == 0
        assert data["devices_failed"] == ["a", "b"]
