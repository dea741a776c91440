"""
Lifecycle telemetry.

Provides Prometheus metrics for:
- Match status transitions
- Reconciliation passes (scheduler tick, read-triggered, result entry, prediction)
- Prediction submissions by outcome
- Scheduler job health

and optional Sentry error tracking.
"""

from tipping.telemetry.metrics import (
    match_status_transitions_total,
    reconcile_runs_total,
    prediction_submissions_total,
    job_runs_total,
    job_duration_ms,
    job_last_success_timestamp,
    record_transitions,
    record_reconcile_run,
    record_prediction_submission,
    record_job_run,
    get_metrics_text,
)
from tipping.telemetry.sentry import capture_exception, init_sentry

__all__ = [
    "match_status_transitions_total",
    "reconcile_runs_total",
    "prediction_submissions_total",
    "job_runs_total",
    "job_duration_ms",
    "job_last_success_timestamp",
    "record_transitions",
    "record_reconcile_run",
    "record_prediction_submission",
    "record_job_run",
    "get_metrics_text",
    "capture_exception",
    "init_sentry",
]
