"""Telemetry helpers for optimizer runs."""

from __future__ import annotations

import os

from prometheus_client import Counter, Histogram

from aimpoint.metrics import REGISTRY

_latency_histogram = Histogram(
    "aim_optimize_latency_ms",
    "Latency of aim-point optimization runs in milliseconds",
    labelnames=("strategy",),
    buckets=(50, 100, 250, 500, 1000, 2500, 5000, 10000, 20000, 60000),
    registry=REGISTRY,
)

_run_counter = Counter(
    "aim_optimize_runs_total",
    "Total aim-point optimization runs by outcome",
    labelnames=("strategy", "outcome"),
    registry=REGISTRY,
)

_evaluations_histogram = Histogram(
    "aim_optimize_evaluations",
    "Aim points evaluated per optimization run",
    labelnames=("strategy",),
    buckets=(10, 50, 100, 250, 500, 1000, 2500, 5000),
    registry=REGISTRY,
)


def record_run_metrics(
    *,
    strategy: str,
    outcome: str,
    duration_ms: float,
    evaluations: int,
) -> None:
    """Publish Prometheus metrics for a finished or aborted run."""
    _run_counter.labels(strategy=strategy, outcome=outcome).inc()
    if outcome == "ok":
        _latency_histogram.labels(strategy=strategy).observe(duration_ms)
        _evaluations_histogram.labels(strategy=strategy).observe(evaluations)


def build_structured_log_payload(
    *,
    strategy: str,
    outcome: str,
    iterations: int,
    evaluations: int,
    candidates: int,
    best_es: float | None = None,
    duration_ms: float | None = None,
) -> dict:
    """Build a structured log record for downstream sinks."""
    payload = {
        "strategy": strategy,
        "outcome": outcome,
        "iterations": iterations,
        "evaluations": evaluations,
        "candidates": candidates,
        "build_version": os.getenv("BUILD_VERSION", "unknown"),
        "git_sha": os.getenv("GIT_SHA", "unknown"),
    }
    if best_es is not None:
        payload["best_es"] = round(best_es, 4)
    if duration_ms is not None:
        payload["duration_ms"] = duration_ms
    return payload


__all__ = ["build_structured_log_payload", "record_run_metrics"]
