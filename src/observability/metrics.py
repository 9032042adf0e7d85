"""
Prometheus Metrics for MedCite

Tracks:
- queries_total: Counter of queries, labelled by outcome
- query_latency_seconds: Histogram of end-to-end pipeline time
- classifier_failures_total: LLM scope classification failures
- rewrite_fallbacks_total: Queries searched with their original text
- funnel_phase_failures_total: Enrichment phases that degraded, by phase
- synthesis_fallbacks_total: Answers replaced by the fixed fallback text
"""

import logging
import threading

logger = logging.getLogger(__name__)

OUTCOMES = ("answered", "out_of_scope", "no_results")
FUNNEL_PHASES = ("citations", "full_metadata")

# Thread-safe metrics storage
_lock = threading.Lock()

_metrics: dict[str, float] = {
    "queries_total": 0,
    "classifier_failures": 0,
    "rewrite_fallbacks": 0,
    "synthesis_fallbacks": 0,
    "avg_latency_ms": 0.0,
}

_outcomes: dict[str, int] = {outcome: 0 for outcome in OUTCOMES}
_funnel_failures: dict[str, int] = {phase: 0 for phase in FUNNEL_PHASES}

_latencies: list[float] = []


def record_query(latency_ms: float, outcome: str) -> None:
    """Record metrics for a query that reached a terminal state."""
    with _lock:
        _metrics["queries_total"] += 1
        _outcomes[outcome] = _outcomes.get(outcome, 0) + 1
        _latencies.append(latency_ms)
        _metrics["avg_latency_ms"] = sum(_latencies) / len(_latencies)


def record_classifier_failure() -> None:
    with _lock:
        _metrics["classifier_failures"] += 1


def record_rewrite_fallback() -> None:
    with _lock:
        _metrics["rewrite_fallbacks"] += 1


def record_funnel_failure(phase: str) -> None:
    with _lock:
        _funnel_failures[phase] = _funnel_failures.get(phase, 0) + 1


def record_synthesis_fallback() -> None:
    with _lock:
        _metrics["synthesis_fallbacks"] += 1


def get_metrics_text() -> str:
    """Generate Prometheus-compatible metrics text."""
    with _lock:
        sorted_latencies = sorted(_latencies) if _latencies else [0]
        p50 = _percentile(sorted_latencies, 50)
        p95 = _percentile(sorted_latencies, 95)
        p99 = _percentile(sorted_latencies, 99)

        lines = [
            "# HELP queries_total Total number of queries processed",
            "# TYPE queries_total counter",
            f'queries_total {int(_metrics["queries_total"])}',
        ]
        lines += [
            f'queries_total{{outcome="{outcome}"}} {count}'
            for outcome, count in _outcomes.items()
        ]
        lines += [
            "",
            "# HELP query_latency_seconds Query response time histogram",
            "# TYPE query_latency_seconds histogram",
            f'query_latency_seconds{{le="1.0"}} {_count_below(sorted_latencies, 1000)}',
            f'query_latency_seconds{{le="5.0"}} {_count_below(sorted_latencies, 5000)}',
            f'query_latency_seconds{{le="10.0"}} {_count_below(sorted_latencies, 10000)}',
            f'query_latency_seconds{{le="30.0"}} {_count_below(sorted_latencies, 30000)}',
            f"query_latency_seconds_p50 {p50 / 1000:.4f}",
            f"query_latency_seconds_p95 {p95 / 1000:.4f}",
            f"query_latency_seconds_p99 {p99 / 1000:.4f}",
            "",
            "# HELP classifier_failures_total LLM scope classification failures",
            "# TYPE classifier_failures_total counter",
            f'classifier_failures_total {int(_metrics["classifier_failures"])}',
            "",
            "# HELP rewrite_fallbacks_total Queries searched with the original text",
            "# TYPE rewrite_fallbacks_total counter",
            f'rewrite_fallbacks_total {int(_metrics["rewrite_fallbacks"])}',
            "",
            "# HELP funnel_phase_failures_total Degraded enrichment phases",
            "# TYPE funnel_phase_failures_total counter",
        ]
        lines += [
            f'funnel_phase_failures_total{{phase="{phase}"}} {count}'
            for phase, count in _funnel_failures.items()
        ]
        lines += [
            "",
            "# HELP synthesis_fallbacks_total Answers replaced by the fallback text",
            "# TYPE synthesis_fallbacks_total counter",
            f'synthesis_fallbacks_total {int(_metrics["synthesis_fallbacks"])}',
        ]

        return "\n".join(lines) + "\n"


def reset_metrics() -> None:
    """Reset all metrics to zero."""
    with _lock:
        for key in _metrics:
            _metrics[key] = 0
        for key in _outcomes:
            _outcomes[key] = 0
        for key in _funnel_failures:
            _funnel_failures[key] = 0
        _latencies.clear()


def _percentile(sorted_data: list[float], percentile: int) -> float:
    """Compute the given percentile from sorted data."""
    if not sorted_data:
        return 0.0
    idx = int(len(sorted_data) * percentile / 100)
    idx = min(idx, len(sorted_data) - 1)
    return sorted_data[idx]


def _count_below(sorted_data: list[float], threshold_ms: float) -> int:
    """Count values below threshold in sorted data."""
    count = 0
    for v in sorted_data:
        if v <= threshold_ms:
            count += 1
        else:
            break
    return count
