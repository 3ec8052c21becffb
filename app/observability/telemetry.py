from __future__ import annotations

import functools
import inspect
from time import perf_counter
from typing import Any, Callable, TypeVar

import structlog

from app.errors import TelemetryConfigError
from app.observability.metrics import InMemoryMetrics, get_metrics


F = TypeVar("F", bound=Callable[..., Any])

LICENSE_KEY_LENGTH = 40

logger = structlog.get_logger("telemetry")


def _is_error(result: Any) -> bool:
    status_code = getattr(result, "status_code", None)
    return isinstance(status_code, int) and status_code >= 500


class Telemetry:
    """Named-transaction recorder for route handlers."""

    def __init__(self, app_name: str, license_key: str, metrics: InMemoryMetrics | None = None) -> None:
        self.app_name = app_name
        self._license_key = license_key
        self._metrics = metrics

    @property
    def metrics(self) -> InMemoryMetrics:
        return self._metrics or get_metrics()

    def _record(self, name: str, start: float, error: bool) -> None:
        elapsed_ms = (perf_counter() - start) * 1000.0
        self.metrics.observe_transaction(name, elapsed_ms=elapsed_ms, error=error)
        logger.info(
            "transaction",
            app_name=self.app_name,
            transaction=name,
            elapsed_ms=round(elapsed_ms, 2),
            error=error,
        )

    def wrap(self, name: str, handler: F) -> F:
        """Return ``handler`` timed as transaction ``name``.

        The wrapper keeps the handler's signature (FastAPI reads it through
        ``__wrapped__``) and hands back its result or exception untouched.
        """

        if inspect.iscoroutinefunction(handler):

            @functools.wraps(handler)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                start = perf_counter()
                try:
                    result = await handler(*args, **kwargs)
                except Exception:
                    self._record(name, start, error=True)
                    raise
                self._record(name, start, error=_is_error(result))
                return result

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(handler)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = perf_counter()
            try:
                result = handler(*args, **kwargs)
            except Exception:
                self._record(name, start, error=True)
                raise
            self._record(name, start, error=_is_error(result))
            return result

        return wrapper  # type: ignore[return-value]


def init_telemetry(app_name: str, license_key: str, metrics: InMemoryMetrics | None = None) -> Telemetry:
    """Validate the backend identifiers and return a recorder.

    Raises ``TelemetryConfigError`` on a blank app name or a license key that
    is not 40 characters.
    """

    if not app_name.strip():
        raise TelemetryConfigError("telemetry app name is required")
    if len(license_key.strip()) != LICENSE_KEY_LENGTH:
        raise TelemetryConfigError(f"telemetry license key must be {LICENSE_KEY_LENGTH} characters")

    logger.info("telemetry.initialized", app_name=app_name)
    return Telemetry(app_name=app_name, license_key=license_key.strip(), metrics=metrics)
