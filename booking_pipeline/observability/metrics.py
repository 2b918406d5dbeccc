"""
Prometheus metrics for booking-pipeline

Counters for ingestion, promotion and data quality, histograms for run and
aggregation durations. All metrics live in a module-level registry so tests
can read them without touching the global default registry.
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from booking_pipeline.core.models.validation_outcome import ViolationKind

REGISTRY = CollectorRegistry()


# =======================
# INGESTION METRICS
# =======================

raw_records_ingested_total = Counter(
    name="booking_raw_records_ingested_total",
    documentation="Rows appended to the raw store",
    registry=REGISTRY,
)

malformed_rows_total = Counter(
    name="booking_malformed_rows_total",
    documentation="Rows dropped at the raw store boundary (no booking_id)",
    registry=REGISTRY,
)

# =======================
# PROMOTION METRICS
# =======================

records_promoted_total = Counter(
    name="booking_records_promoted_total",
    documentation="Records newly promoted into the curated store",
    registry=REGISTRY,
)

records_rejected_total = Counter(
    name="booking_records_rejected_total",
    documentation="Records newly rejected by a hard validation rule",
    labelnames=["reason"],
    registry=REGISTRY,
)

records_skipped_total = Counter(
    name="booking_records_skipped_total",
    documentation="Records skipped because a load marker already existed",
    registry=REGISTRY,
)

conflicting_duplicates_total = Counter(
    name="booking_conflicting_duplicates_total",
    documentation="Raw records sharing an identifier with a different payload",
    registry=REGISTRY,
)

# =======================
# DATA QUALITY METRICS
# =======================

violations_total = Counter(
    name="booking_violations_total",
    documentation="Violation tags attached during classification",
    labelnames=["kind", "severity"],
    registry=REGISTRY,
)

# =======================
# RUN METRICS
# =======================

runs_total = Counter(
    name="booking_pipeline_runs_total",
    documentation="Pipeline runs by exit status",
    labelnames=["exit_status"],
    registry=REGISTRY,
)

run_duration_seconds = Histogram(
    name="booking_pipeline_run_duration_seconds",
    documentation="Duration of a full pipeline increment",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
    registry=REGISTRY,
)

aggregation_duration_seconds = Histogram(
    name="booking_aggregation_duration_seconds",
    documentation="Time spent refreshing aggregates",
    labelnames=["scope"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

curated_records = Gauge(
    name="booking_curated_records",
    documentation="Records in the curated store after the last run",
    registry=REGISTRY,
)

# =======================
# HELPER FUNCTIONS
# =======================


def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


class track_duration:
    """
    Context manager for tracking operation duration

    Usage:
        with track_duration(aggregation_duration_seconds, scope="full"):
            ...
    """

    def __init__(self, histogram: Histogram, **labels):
        self.histogram = histogram
        self.labels = labels
        self.timer = None

    def __enter__(self):
        target = self.histogram.labels(**self.labels) if self.labels else self.histogram
        self.timer = target.time()
        self.timer.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.timer.__exit__(exc_type, exc_val, exc_tb)
        return False


def increment_counter(counter: Counter, value: float = 1.0, **labels) -> None:
    """
    Increment a counter metric

    Args:
        counter: Prometheus Counter metric
        value: Amount to increment (default: 1.0)
        **labels: Label values for the metric
    """
    if value <= 0:
        return
    target = counter.labels(**labels) if labels else counter
    target.inc(value)


def set_gauge(gauge: Gauge, value: float, **labels) -> None:
    target = gauge.labels(**labels) if labels else gauge
    target.set(value)


def observe_histogram(histogram: Histogram, value: float, **labels) -> None:
    target = histogram.labels(**labels) if labels else histogram
    target.observe(value)


# =======================
# RUN HELPERS
# =======================


def record_ingest(accepted: int, malformed: int) -> None:
    """Record rows accepted into and dropped from the raw store."""
    increment_counter(raw_records_ingested_total, accepted)
    increment_counter(malformed_rows_total, malformed)


def record_run(summary) -> None:
    """
    Record the counts of a finished pipeline run.

    Args:
        summary: RunSummary of the run
    """
    increment_counter(records_promoted_total, summary.promoted)
    increment_counter(records_skipped_total, summary.skipped)
    increment_counter(conflicting_duplicates_total, summary.conflicting_duplicates)

    for reason, count in summary.rejections_by_reason.items():
        increment_counter(records_rejected_total, count, reason=reason)

    for kind, count in summary.violations_by_kind.items():
        severity = ViolationKind(kind).severity.value
        increment_counter(violations_total, count, kind=kind, severity=severity)

    observe_histogram(run_duration_seconds, summary.duration_seconds)
    increment_counter(runs_total, 1, exit_status=summary.exit_status.name.lower())


def get_sample(name: str, labels: dict | None = None) -> float:
    """Current value of a sample in the pipeline registry (0.0 when absent)."""
    value = REGISTRY.get_sample_value(name, labels or {})
    return value or 0.0
