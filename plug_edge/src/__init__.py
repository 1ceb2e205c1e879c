"""
Edge daemon package for the plug-to-InfluxDB energy pipeline.

Polls HS110-class smart plugs over their encrypted TCP protocol, converts
realtime emeter readings into line-protocol points, and writes one batch per
cycle to InfluxDB 2.x over HTTP.

CHANGELOG:
- 2026-10-09: Initial creation (STORY-001)

TODO:
- None
"""
