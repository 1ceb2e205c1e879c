"""
Pure normalizer that converts a plug Reading into a MetricPoint.

Voltage, current and power arrive in milli-units and are divided by 1000
(float division, so ``0`` becomes ``0.0``). ``total_wh`` is passed through
unscaled and keeps its JSON type.

This is a pure function: no side effects, no I/O, no clock. The label and
timestamp are accepted as parameters so every point in a cycle can share the
cycle's single timestamp.

CHANGELOG:
- 2026-10-09: Initial creation (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from plug_edge.src.models import MetricPoint, Reading

_MILLI: float = 1000.0


def normalize(reading: Reading, *, label: str, ts: int) -> MetricPoint:
    """Build the ``energy`` point for *reading*.

    Args:
        reading: Telemetry returned by the plug.
        label: Plug label, written as the ``plug`` tag.
        ts: Cycle timestamp in Unix seconds.

    Returns:
        A MetricPoint with fields in the order voltage, current, power,
        total_wh.
    """
    return MetricPoint(
        tags={"plug": label},
        fields={
            "voltage": reading.voltage_mv / _MILLI,
            "current": reading.current_ma / _MILLI,
            "power": reading.power_mw / _MILLI,
            "total_wh": reading.total_wh,
        },
        timestamp=ts,
    )
