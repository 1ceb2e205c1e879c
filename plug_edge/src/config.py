"""
Edge daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded IPs, URLs, or credentials. Invalid or missing values fail at
startup with a ValidationError, before the poll loop begins.

CHANGELOG:
- 2026-10-12: Reject duplicate plug labels and empty HS110_HOSTS entries
- 2026-10-10: Initial creation (STORY-008)

TODO:
- None
"""

from __future__ import annotations

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from plug_edge.src.models import DEFAULT_DEVICE_PORT, Device


def parse_hosts(raw: str, port: int = DEFAULT_DEVICE_PORT) -> list[Device]:
    """Parse a ``label:host[,label:host...]`` device list.

    Each entry is split on its first colon only, so IPv6 literals survive
    (``rack:::1`` -> label ``rack``, host ``::1``). Labels and hosts are
    stripped of surrounding whitespace.

    Args:
        raw: Comma-separated device list.
        port: TCP port assigned to every device.

    Returns:
        Devices in the order they appear in *raw*.

    Raises:
        ValueError: An entry is empty, has no colon, has an empty label or
            host, or repeats an earlier label.
    """
    devices: list[Device] = []
    seen: set[str] = set()
    for entry in raw.split(","):
        label, sep, host = entry.strip().partition(":")
        label = label.strip()
        host = host.strip()
        if not sep or not label or not host:
            raise ValueError(f"Bad HS110_HOSTS entry: {entry!r}")
        if label in seen:
            raise ValueError(f"Duplicate plug label in HS110_HOSTS: {label!r}")
        seen.add(label)
        devices.append(Device(label=label, host=host, port=port))
    return devices


class EdgeSettings(BaseSettings):
    """Edge daemon configuration for the plug-to-InfluxDB poller.

    All values are loaded from environment variables. Required variables
    must be set; optional variables have sensible defaults.

    Attributes:
        hs110_hosts: Device list, ``label:host[,label:host...]``.
        influxdb_url: InfluxDB base URL.
        influxdb_token: InfluxDB API token.
        influxdb_org: InfluxDB organization.
        influxdb_bucket: InfluxDB bucket.
        poll_interval: Seconds between poll cycles (default 10).
        device_port: TCP port of every plug (default 9999).
        device_timeout_s: Per-step plug timeout in seconds (default 5).
        influxdb_timeout_s: HTTP timeout for the write call (default 5).
        health_path: Health JSON file path; empty disables the file.
        log_level: Root log level name (default INFO).
    """

    hs110_hosts: str
    influxdb_url: str
    influxdb_token: str
    influxdb_org: str
    influxdb_bucket: str
    poll_interval: int = 10
    device_port: int = DEFAULT_DEVICE_PORT
    device_timeout_s: float = 5.0
    influxdb_timeout_s: float = 5.0
    health_path: str = ""
    log_level: str = "INFO"

    @field_validator(
        "influxdb_url", "influxdb_token", "influxdb_org", "influxdb_bucket"
    )
    @classmethod
    def influxdb_values_must_be_set(cls, v: str) -> str:
        """Reject blank InfluxDB settings."""
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    @field_validator("influxdb_url")
    @classmethod
    def influxdb_url_must_be_http(cls, v: str) -> str:
        """Validate that the InfluxDB URL has an http(s) scheme."""
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                f"INFLUXDB_URL must start with http:// or https:// (got: '{v[:20]}')"
            )
        return v

    @field_validator("poll_interval")
    @classmethod
    def poll_interval_must_be_positive(cls, v: int) -> int:
        """Validate poll interval is at least one second."""
        if v < 1:
            raise ValueError("POLL_INTERVAL must be >= 1")
        return v

    @field_validator("device_port")
    @classmethod
    def device_port_must_be_valid(cls, v: int) -> int:
        """Validate the plug TCP port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("DEVICE_PORT must be between 1 and 65535")
        return v

    @field_validator("device_timeout_s", "influxdb_timeout_s")
    @classmethod
    def timeouts_must_be_positive(cls, v: float) -> float:
        """Validate timeouts are strictly positive."""
        if v <= 0:
            raise ValueError("timeouts must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        """Validate the log level is a standard level name."""
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"LOG_LEVEL must be a standard level name (got: '{v}')")
        return level

    @model_validator(mode="after")
    def _validate_hosts(self) -> EdgeSettings:
        """Parse HS110_HOSTS eagerly so malformed entries fail at startup."""
        parse_hosts(self.hs110_hosts, self.device_port)
        return self

    @property
    def devices(self) -> list[Device]:
        """Configured plugs, in HS110_HOSTS order."""
        return parse_hosts(self.hs110_hosts, self.device_port)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
