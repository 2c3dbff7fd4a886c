"""
Station-side payload tooling for the weather telemetry pipeline.

Defines the binary frame format that field stations emit (format table,
decoder, encoder) and a command line decoder.  The decoder doubles as the
network server's uplink payload formatter, so its output is the measurement
schema the ingestor consumes.

CHANGELOG:
- 2026-10-12: Repurpose package for station frame decoding
"""
