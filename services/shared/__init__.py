"""
Shared utilities for the expense import service.

- observability: telemetry, JSON logging, and privacy helpers
"""
