"""Metrics and tracing helpers for MFA operations.

Integrates with Prometheus and OpenTelemetry when they are installed
(``pip install mfa-vault[observability]``) and is a no-op otherwise.

Usage:
    ```python
    with VaultMetrics.operation("enroll"), VaultTracing.span(
        "enroll", attributes={"mfa.user_name": user_name}
    ):
        result = await protocol.enroll(user_name)
    ```
"""

from __future__ import annotations

import functools
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

_logger = logging.getLogger(__name__)

try:
    from opentelemetry import trace
    from opentelemetry.trace import Status, StatusCode

    HAS_OTEL = True
except ImportError:
    HAS_OTEL = False
    trace = None  # type: ignore[assignment]
    Status = None  # type: ignore[assignment,misc]
    StatusCode = None  # type: ignore[assignment,misc]


@functools.cache
def _instruments() -> tuple[Any, Any]:
    """Histogram and counter, or (None, None) without prometheus_client."""
    try:
        from prometheus_client import Counter, Histogram
    except ImportError:
        _logger.debug("prometheus_client not available, metrics disabled")
        return None, None

    histogram = Histogram(
        "mfa_vault_operation_duration_seconds",
        "MFA device operation duration",
        ["operation"],
    )
    counter = Counter(
        "mfa_vault_operations_total",
        "MFA device operation count",
        ["operation", "result"],
    )
    return histogram, counter


@functools.cache
def _tracer() -> Any:
    if HAS_OTEL and trace:
        return trace.get_tracer("mfa-vault")
    return None


class VaultMetrics:
    """Prometheus helpers for enrollment, teardown and session invalidation."""

    @staticmethod
    @contextmanager
    def operation(operation: str) -> Generator[None, None, None]:
        """Time ``operation`` and count its outcome."""
        result = "success"
        start = time.monotonic()

        try:
            yield
        except Exception:
            result = "error"
            raise
        finally:
            duration = time.monotonic() - start
            histogram, counter = _instruments()

            if histogram is not None:
                try:
                    histogram.labels(operation=operation).observe(duration)
                except Exception:  # noqa: BLE001
                    _logger.debug("Failed to record histogram")

            if counter is not None:
                try:
                    counter.labels(operation=operation, result=result).inc()
                except Exception:  # noqa: BLE001
                    _logger.debug("Failed to record counter")


class VaultTracing:
    """OpenTelemetry helpers."""

    @staticmethod
    @contextmanager
    def span(
        operation: str,
        *,
        attributes: dict[str, Any] | None = None,
    ) -> Generator[Any, None, None]:
        """Run the body inside a ``mfa.<operation>`` span.

        Yields:
            Span object or None if tracing is disabled.
        """
        tracer = _tracer()
        if not tracer:
            yield None
            return

        with tracer.start_as_current_span(f"mfa.{operation}") as span:
            try:
                span.set_attribute("mfa.operation", operation)
                for key, value in (attributes or {}).items():
                    span.set_attribute(key, str(value))
                yield span
            except Exception as e:
                if Status and StatusCode:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                raise


__all__: list[str] = [
    "HAS_OTEL",
    "VaultMetrics",
    "VaultTracing",
]
