"""Logging and telemetry support."""
