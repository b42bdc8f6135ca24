"""Metrics hook protocol and no-op default implementation.

imgbed emits counters, timings and gauges at the pipeline's seams.  By
default :class:`NoopMetricsHook` discards them; pass any object that
satisfies :class:`MetricsHook` as ``ImgbedConfig(metrics=...)`` to route
them to a real backend.

Emitted metric names:

* ``imgbed.requests_total``          -- counter (tags: ``op``, ``status``)
* ``imgbed.request_duration_ms``     -- timing  (tags: ``op``)
* ``imgbed.upload_success_total``    -- counter
* ``imgbed.upload_failure_total``    -- counter (tags: ``code``)
* ``imgbed.cache_hits_total``        -- counter
* ``imgbed.encode_failure_total``    -- counter (tags: ``code``)
* ``imgbed.delete_total``            -- counter (tags: ``status``)
* ``imgbed.jobs_in_flight``          -- gauge
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
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
        """Set a gauge metric to an absolute value."""
        ...


class NoopMetricsHook:
    """Default metrics implementation that silently discards all data points."""

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
