"""
InfluxDB 2.x line-protocol sink for batches of plug metric points.

Serializes each MetricPoint as one line-protocol line, joins the lines with
``\\n`` and POSTs the payload once to ``{base_url}/api/v2/write`` with
``org``, ``bucket`` and ``precision=s`` query parameters and a ``Token``
Authorization header. Any 2xx response is success.

No retry happens here: a failed batch is dropped and the next poll cycle
writes whatever is current at that time.

Operations:
- format_line(point): Render a single line-protocol line.
- MetricSink.write(points): POST one batch, raising SinkWriteError on failure.

CHANGELOG:
- 2026-10-11: Escape line-protocol special characters in tag values
- 2026-10-10: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from plug_edge.src.errors import SinkWriteError
from plug_edge.src.models import MetricPoint

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT_S = 5.0

_TAG_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})


def format_line(point: MetricPoint) -> str:
    """Render *point* as ``measurement,tags fields timestamp``.

    Tag values have commas, equals signs and spaces backslash-escaped.
    Field values use Python's ``str`` so floats always carry a decimal part
    (``0.0``) and integers stay bare (``42``).
    """
    tags = ",".join(
        f"{key}={value.translate(_TAG_ESCAPES)}" for key, value in point.tags.items()
    )
    fields = ",".join(f"{key}={value}" for key, value in point.fields.items())
    head = f"{point.measurement},{tags}" if tags else point.measurement
    return f"{head} {fields} {point.timestamp}"


class MetricSink:
    """Writes batches of MetricPoints to an InfluxDB 2.x bucket.

    Args:
        base_url: InfluxDB base URL, e.g. ``http://influx.lan:8086``. A
            trailing slash is ignored.
        token: InfluxDB API token.
        org: Organization name.
        bucket: Bucket name.
        timeout_s: HTTP timeout in seconds for the write request.

    Usage::

        sink = MetricSink(
            base_url="http://influx.lan:8086",
            token="tok-123",
            org="home",
            bucket="energy",
        )
        await sink.write(points)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        org: str,
        bucket: str,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._org = org
        self._bucket = bucket
        self._timeout_s = timeout_s

    @property
    def write_url(self) -> str:
        """Full URL of the write endpoint (without query parameters)."""
        return f"{self._base_url}/api/v2/write"

    async def write(self, points: Sequence[MetricPoint]) -> None:
        """POST *points* as one line-protocol batch.

        Args:
            points: Points to write, in order. An empty batch is a no-op.

        Raises:
            SinkWriteError: The store returned a non-2xx status, or the
                request failed before a response arrived.
        """
        if not points:
            logger.debug("Empty batch, skipping write.")
            return

        payload = "\n".join(format_line(point) for point in points)

        try:
            async with httpx.AsyncClient(timeout=self._timeout_s) as client:
                response = await client.post(
                    self.write_url,
                    params={
                        "org": self._org,
                        "bucket": self._bucket,
                        "precision": "s",
                    },
                    content=payload.encode("utf-8"),
                    headers={
                        "Authorization": f"Token {self._token}",
                        "Content-Type": "text/plain",
                    },
                )
        except httpx.HTTPError as exc:
            raise SinkWriteError(
                f"InfluxDB write failed (network error): {exc}"
            ) from exc

        if not 200 <= response.status_code < 300:
            raise SinkWriteError(
                f"InfluxDB write failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        logger.info("Wrote %d points to bucket %s.", len(points), self._bucket)
