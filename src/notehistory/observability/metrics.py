"""Metrics hook protocol and its no-op default.

notehistory reports counters and timings around snapshot decisions,
retention eviction, restores and diff computation.  Without a backend a
:class:`NoopMetricsHook` is used, so call sites never need ``None``
checks.

Emitted metric names:

* ``notehistory.snapshots_total``            -- counter
* ``notehistory.snapshots_skipped_total``    -- counter, tag ``reason``
* ``notehistory.versions_evicted_total``     -- counter
* ``notehistory.restores_total``             -- counter
* ``notehistory.extraction_failures_total``  -- counter
* ``notehistory.diff_blocks_total``          -- counter, tag ``status``
* ``notehistory.diff_duration_ms``           -- timing
* ``notehistory.requests_total``             -- counter, tags ``route``/``status``
* ``notehistory.versions_retained``          -- gauge
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    *tags* are string key/value pairs; backends translate them into their
    own labelling scheme.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration in milliseconds."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge to an absolute value."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point."""

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass


def resolve_metrics(metrics: Any | None) -> MetricsHook:
    """Return *metrics*, or a :class:`NoopMetricsHook` when it is ``None``."""
    return metrics if metrics is not None else NoopMetricsHook()
