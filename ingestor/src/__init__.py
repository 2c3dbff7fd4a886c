"""
Uplink ingestor for the weather telemetry pipeline.

Receives network server uplink envelopes (MQTT or webhook), normalizes them
into a canonical record, and persists station, gateway and measurement rows
into PostgreSQL/TimescaleDB with idempotent conflict handling.

CHANGELOG:
- 2026-10-15: Initial creation
"""
