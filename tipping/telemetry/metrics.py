"""
Prometheus metrics for the match lifecycle engine.

Labels are restricted to LOW-CARDINALITY values only:
- job:          "reconcile_match_status" (scheduler jobs)
- status:       "ok", "error"
- from_status / to_status: "planned", "live", "finished"
- outcome:      "accepted", "validation_error", "not_found", "forbidden", "store_error"
- source:       "tick", "read", "result", "prediction"

Never use match_id, user_id or timestamps as labels.
Recording is best-effort and never blocks the main flow.
"""

import time
import logging

from prometheus_client import (
    Counter,
    Histogram,
    Gauge,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)

logger = logging.getLogger(__name__)

# =============================================================================
# LIFECYCLE METRICS
# =============================================================================

match_status_transitions_total = Counter(
    "match_status_transitions_total",
    "Matches moved between lifecycle states",
    ["from_status", "to_status"],
)

reconcile_runs_total = Counter(
    "reconcile_runs_total",
    "Reconciliation passes by trigger source and status",
    ["source", "status"],
)

prediction_submissions_total = Counter(
    "prediction_submissions_total",
    "Prediction submissions by outcome",
    ["outcome"],
)

# =============================================================================
# JOB HEALTH METRICS
# =============================================================================

job_runs_total = Counter(
    "job_runs_total",
    "Total job runs by job and status",
    ["job", "status"],
)

job_last_success_timestamp = Gauge(
    "job_last_success_timestamp",
    "Unix timestamp of last successful job run",
    ["job"],
)

job_duration_ms = Histogram(
    "job_duration_ms",
    "Job duration in milliseconds",
    ["job"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 5000, 30000],
)


def record_transitions(from_status: str, to_status: str, count: int) -> None:
    """Count matches moved from one status to the next."""
    if count <= 0:
        return
    try:
        match_status_transitions_total.labels(
            from_status=from_status, to_status=to_status
        ).inc(count)
    except Exception as e:
        logger.warning(f"Failed to record transition metric: {e}")


def record_reconcile_run(source: str, status: str) -> None:
    try:
        reconcile_runs_total.labels(source=source, status=status).inc()
    except Exception as e:
        logger.warning(f"Failed to record reconcile metric: {e}")


def record_prediction_submission(outcome: str) -> None:
    try:
        prediction_submissions_total.labels(outcome=outcome).inc()
    except Exception as e:
        logger.warning(f"Failed to record prediction metric: {e}")


def record_job_run(job: str, status: str, duration_ms: float) -> None:
    """
    Record a job run with status and duration.

    Args:
        job: Job identifier
        status: "ok" or "error"
        duration_ms: Job duration in milliseconds
    """
    try:
        job_runs_total.labels(job=job, status=status).inc()
        if duration_ms > 0:
            job_duration_ms.labels(job=job).observe(duration_ms)
        if status == "ok":
            job_last_success_timestamp.labels(job=job).set(time.time())
    except Exception as e:
        logger.warning(f"Failed to record job run metric: {e}")


def get_metrics_text() -> tuple[str, str]:
    """
    Generate Prometheus metrics text output.

    Returns:
        Tuple of (content, content_type)
    """
    return generate_latest(REGISTRY).decode("utf-8"), CONTENT_TYPE_LATEST
