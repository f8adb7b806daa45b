import logging
import os
from typing import Optional, Mapping

from opentelemetry import metrics
from opentelemetry.instrumentation.logging import LoggingInstrumentor

_metrics_initialized = False
_uploaded_counter = None
_queue_hist = None


def setup_logging(level: Optional[str] = None) -> None:
    """Configure Python logging with OpenTelemetry log correlation.

    This is safe to call multiple times.
    """
    lvl = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    logging.getLogger().setLevel(lvl)

    instrumentor = LoggingInstrumentor()
    if not instrumentor.is_instrumented_by_opentelemetry:
        instrumentor.instrument(set_logging_format=False)

    logging.basicConfig(
        level=lvl,
        format=(
            "%(asctime)s %(levelname)s "
            "[trace_id=%(otelTraceID)s span_id=%(otelSpanID)s "
            "resource.service.name=%(otelServiceName)s trace_sampled=%(otelTraceSampled)s] "
            "- %(name)s: %(message)s"
        ),
    )


def _init_metrics() -> None:
    global _metrics_initialized, _uploaded_counter, _queue_hist
    if _metrics_initialized:
        return
    meter = metrics.get_meter("location_index.observability")
    _uploaded_counter = meter.create_counter(
        name="locations.reupload.uploaded",
        description="Locations written to the search index by completed re-uploads",
        unit="{locations}",
    )
    _queue_hist = meter.create_histogram(
        name="locations.reupload.queue.depth",
        description="Approximate depth of the RQ re-upload queue",
        unit="{jobs}",
    )
    _metrics_initialized = True


def record_uploaded_locations(count: int, index: str) -> None:
    if not _metrics_initialized:
        _init_metrics()
    _uploaded_counter.add(int(count), {"index": index})


def record_queue_depth(depth: int, attributes: Optional[Mapping[str, str]] = None) -> None:
    """Record a queue depth sample (exported via OTEL metrics).

    We use a histogram so we can see distribution over time without needing stateful callbacks.
    """
    if not _metrics_initialized:
        _init_metrics()
    _queue_hist.record(int(depth), attributes or {"queue": "reupload"})
