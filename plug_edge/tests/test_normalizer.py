"""
Tests for the reading normalizer -- converts a plug Reading to a MetricPoint.

Verifies milli-unit scaling, total_wh pass-through, and that the normalizer
is a pure function with no side effects.

CHANGELOG:
- 2026-10-09: Initial creation -- TDD tests written first (STORY-004)

TODO:
- None
"""

from __future__ import annotations

from plug_edge.src.models import MetricPoint, Reading
from plug_edge.src.normalizer import normalize

_TS = 1_700_000_000


def _make_reading(**overrides: int | float) -> Reading:
    """Return a Reading matching the reference values unless overridden."""
    values: dict[str, int | float] = {
        "voltage_mv": 121_300,
        "current_ma": 1_250,
        "power_mw": 151_625,
        "total_wh": 42,
    }
    values.update(overrides)
    return Reading(**values)


class TestScaling:
    """Milli-units are divided by 1000; total_wh is unscaled."""

    def test_reference_values(self) -> None:
        """Reference reading scales to volts, amps and watts."""
        point = normalize(_make_reading(), label="myplug", ts=_TS)

        assert point.fields == {
            "voltage": 121.3,
            "current": 1.25,
            "power": 151.625,
            "total_wh": 42,
        }

    def test_zero_values_are_floats(self) -> None:
        """Zero milli-values become 0.0, total_wh stays integer 0."""
        point = normalize(
            _make_reading(voltage_mv=0, current_ma=0, power_mw=0, total_wh=0),
            label="off",
            ts=0,
        )

        assert isinstance(point.fields["voltage"], float)
        assert isinstance(point.fields["current"], float)
        assert isinstance(point.fields["power"], float)
        assert point.fields["total_wh"] == 0
        assert isinstance(point.fields["total_wh"], int)

    def test_float_total_wh_passes_through(self) -> None:
        """A fractional total_wh is kept as-is."""
        point = normalize(_make_reading(total_wh=12.5), label="x", ts=_TS)
        assert point.fields["total_wh"] == 12.5

    def test_field_order(self) -> None:
        """Fields are ordered voltage, current, power, total_wh."""
        point = normalize(_make_reading(), label="x", ts=_TS)
        assert list(point.fields) == ["voltage", "current", "power", "total_wh"]


class TestPointShape:
    """Measurement, tag and timestamp come from the caller."""

    def test_measurement_tag_and_timestamp(self) -> None:
        """The point carries the energy measurement, plug tag and cycle ts."""
        point = normalize(_make_reading(), label="rack", ts=_TS)

        assert isinstance(point, MetricPoint)
        assert point.measurement == "energy"
        assert point.tags == {"plug": "rack"}
        assert point.timestamp == _TS

    def test_pure_function(self) -> None:
        """Same inputs produce equal outputs and the reading is unchanged."""
        reading = _make_reading()
        before = reading.model_copy()

        first = normalize(reading, label="rack", ts=_TS)
        second = normalize(reading, label="rack", ts=_TS)

        assert first == second
        assert reading == before
