from __future__ import annotations


class StoreError(Exception):
    """A store call failed at the database level."""

    def __init__(self, message: str, operation: str) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation


class StoreUnavailableError(StoreError):
    """The store could not be reached at startup."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "connect")


class TelemetryConfigError(Exception):
    """Telemetry identifiers are missing or malformed."""
