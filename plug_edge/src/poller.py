"""
Polling orchestrator for a fleet of plugs.

One call to :meth:`Poller.poll_cycle` captures a single timestamp, queries
every configured plug in order, and hands the resulting batch to the sink.
Designed to be robust:

- Plugs are queried strictly one at a time, never in parallel.
- A failing plug is logged with its label and error kind and skipped; it
  never aborts the cycle or affects the other plugs.
- A failing sink write is logged and never propagates to the caller.
- All points of a cycle share the timestamp captured before the first query,
  however long the individual queries take.

CHANGELOG:
- 2026-10-11: Return PollCycle with failed labels and delivery status
- 2026-10-10: Initial creation (STORY-007)

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from plug_edge.src.errors import DeviceQueryError, SinkWriteError
from plug_edge.src.models import PollCycle
from plug_edge.src.normalizer import normalize

if TYPE_CHECKING:
    from plug_edge.src.client import DeviceClient
    from plug_edge.src.models import Device
    from plug_edge.src.sink import MetricSink

logger = logging.getLogger(__name__)


class Poller:
    """Runs polling cycles over an ordered set of plugs.

    Args:
        devices: Plugs to query, in the order they are queried.
        client: Client used to query each plug.
        sink: Sink receiving each non-empty batch.
        clock: Returns the current Unix time in seconds (float).
    """

    def __init__(
        self,
        *,
        devices: Sequence[Device],
        client: DeviceClient,
        sink: MetricSink,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._devices = tuple(devices)
        self._client = client
        self._sink = sink
        self._clock = clock

    @property
    def devices(self) -> tuple[Device, ...]:
        """Configured plugs, in query order."""
        return self._devices

    async def poll_cycle(self) -> PollCycle:
        """Query every plug once and write the batch.

        Returns:
            The cycle's timestamp, points, failed labels and whether the
            batch was delivered.
        """
        cycle = PollCycle(timestamp=int(self._clock()))

        for device in self._devices:
            try:
                reading = await self._client.get_realtime(device)
            except DeviceQueryError as exc:
                logger.error("[%s] %s: %s", device.label, type(exc).__name__, exc)
                cycle.failed.append(device.label)
                continue
            except Exception:
                logger.error(
                    "[%s] Unexpected error during query", device.label, exc_info=True
                )
                cycle.failed.append(device.label)
                continue

            point = normalize(reading, label=device.label, ts=cycle.timestamp)
            cycle.points.append(point)
            logger.info(
                "[%s] %sV  %sA  %sW  %sWh",
                device.label,
                point.fields["voltage"],
                point.fields["current"],
                point.fields["power"],
                point.fields["total_wh"],
            )

        if cycle.points:
            cycle.delivered = await self._deliver(cycle)
        else:
            logger.warning("No plug answered this cycle, skipping write")

        return cycle

    async def _deliver(self, cycle: PollCycle) -> bool:
        """Write the cycle's points, logging any failure."""
        try:
            await self._sink.write(cycle.points)
        except SinkWriteError as exc:
            logger.error("InfluxDB: %s", exc)
            return False
        except Exception:
            logger.error("InfluxDB: unexpected write error", exc_info=True)
            return False
        return True
