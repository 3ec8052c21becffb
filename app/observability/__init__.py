"""Request context, access logs and handler telemetry.

Everything here is process-local: request IDs ride on structlog contextvars
and counters live in an in-memory metrics object.
"""
