"""
MedCite Observability Module

Monitoring components:
- Prometheus-text pipeline metrics
"""

from src.observability.metrics import (
    get_metrics_text,
    record_classifier_failure,
    record_funnel_failure,
    record_query,
    record_rewrite_fallback,
    record_synthesis_fallback,
    reset_metrics,
)

__all__ = [
    "get_metrics_text",
    "record_classifier_failure",
    "record_funnel_failure",
    "record_query",
    "record_rewrite_fallback",
    "record_synthesis_fallback",
    "reset_metrics",
]
