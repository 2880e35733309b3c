"""
Prometheus metrics configuration and collectors.
"""
import structlog
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

logger = structlog.get_logger()

# Create a custom registry (separate from the default)
metrics_registry = CollectorRegistry()

# Analysis duration metrics
analysis_duration_histogram = Histogram(
    'policy_weeder_analysis_duration_seconds',
    'Duration of policy analysis passes in seconds',
    ['weighting_mode'],
    registry=metrics_registry
)

# Policies analyzed metrics
policies_analyzed_counter = Counter(
    'policy_weeder_policies_analyzed_total',
    'Total number of policies accepted into an analysis pass',
    ['state'],
    registry=metrics_registry
)

# Malformed policy metrics
malformed_policies_counter = Counter(
    'policy_weeder_malformed_policies_total',
    'Total number of policies skipped as malformed',
    registry=metrics_registry
)

# Overlap groups gauge
overlap_groups_gauge = Gauge(
    'policy_weeder_overlap_groups',
    'Number of overlap groups found by the last analysis pass',
    ['weighting_mode'],
    registry=metrics_registry
)

# Security score gauge
security_score_gauge = Gauge(
    'policy_weeder_security_score',
    'Security score computed by the last analysis pass',
    registry=metrics_registry
)


def get_metrics() -> bytes:
    """
    Generate and return metrics in Prometheus format.

    Returns:
        bytes: Metrics in Prometheus exposition format
    """
    logger.info("metrics_requested")
    return generate_latest(metrics_registry)


def record_analysis_duration(weighting_mode: str, duration: float) -> None:
    """
    Record analysis pass duration.

    Args:
        weighting_mode: Similarity strategy used for grouping
        duration: Duration in seconds
    """
    analysis_duration_histogram.labels(weighting_mode=weighting_mode).observe(duration)
    logger.debug("analysis_duration_recorded", weighting_mode=weighting_mode, duration=duration)


def increment_policies_analyzed(state: str, count: int = 1) -> None:
    """
    Increment policies analyzed counter.

    Args:
        state: Lifecycle state of the policies
        count: Number of policies to increment by
    """
    policies_analyzed_counter.labels(state=state).inc(count)


def increment_malformed_policies(count: int = 1) -> None:
    """Increment the malformed policy counter."""
    malformed_policies_counter.inc(count)


def set_overlap_groups(weighting_mode: str, count: int) -> None:
    """Set the overlap group gauge for a weighting mode."""
    overlap_groups_gauge.labels(weighting_mode=weighting_mode).set(count)


def set_security_score(score: int) -> None:
    """Set the last computed security score."""
    security_score_gauge.set(score)
