"""
Data models for plugs, their readings, and the points written to InfluxDB.

- Device: a configured plug (label, host, port), immutable.
- Reading: the ``emeter.get_realtime`` telemetry object reported by a plug,
  in the plug's native milli-units.
- MetricPoint: one line-protocol point derived from a Reading.
- PollCycle: the outcome of one polling pass over all configured plugs.

CHANGELOG:
- 2026-10-13: Validate Reading strictly (no bool or numeric-string coercion)
- 2026-10-11: Add PollCycle for loop logging and health reporting
- 2026-10-09: Initial creation (STORY-002)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_DEVICE_PORT: int = 9999
"""TCP port HS110-class plugs listen on."""

MEASUREMENT: str = "energy"
"""InfluxDB measurement name for every point."""


@dataclass(frozen=True, slots=True)
class Device:
    """A configured plug.

    Attributes:
        label: Unique, non-empty name used as the ``plug`` tag.
        host: IP address or hostname of the plug.
        port: TCP port of the plug protocol.
    """

    label: str
    host: str
    port: int = DEFAULT_DEVICE_PORT


class Reading(BaseModel):
    """Realtime telemetry reported by a plug.

    Field names follow the plug's JSON keys. ``err_code`` defaults to 0
    when the plug omits it. Validation is strict: booleans and numeric
    strings are rejected rather than coerced.

    Attributes:
        voltage_mv: RMS voltage in millivolts.
        current_ma: RMS current in milliamps.
        power_mw: Active power in milliwatts.
        total_wh: Cumulative energy in watt-hours (unscaled).
        err_code: Device error code; 0 means OK.
    """

    model_config = ConfigDict(extra="ignore", strict=True)

    voltage_mv: int
    current_ma: int
    power_mw: int
    total_wh: int | float
    err_code: int = 0


class MetricPoint(BaseModel):
    """A single line-protocol point for one plug at one cycle timestamp.

    Attributes:
        measurement: Measurement name (always ``"energy"``).
        tags: Tag set, ``{"plug": label}``.
        fields: Field set in field order ``voltage``, ``current``,
            ``power``, ``total_wh``.
        timestamp: Unix timestamp in seconds.
    """

    measurement: str = MEASUREMENT
    tags: dict[str, str]
    fields: dict[str, int | float]
    timestamp: int


class PollCycle(BaseModel):
    """Result of one polling cycle.

    Attributes:
        timestamp: Unix seconds captured once before querying any plug.
        points: Points from every plug that answered, in configured order.
        failed: Labels of plugs whose query failed this cycle.
        delivered: True when the batch was accepted by the sink.
    """

    timestamp: int
    points: list[MetricPoint] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)
    delivered: bool = False
