"""
Prometheus-based metrics for the image generation pipeline.
Exposition (HTTP endpoint) is left to the hosting process.
"""
from prometheus_client import Counter, Histogram


# Counters
image_requests_total = Counter(
    "image_requests_total",
    "Total image use case executions by outcome",
    ["operation", "status"],  # generate/edit; success, invalid, unavailable, failed, error
)

image_regenerate_retries_total = Counter(
    "image_regenerate_retries_total",
    "Total automatic regeneration retries scheduled",
    ["operation", "failure_type"],
)

image_regenerate_outcomes_total = Counter(
    "image_regenerate_outcomes_total",
    "Total regeneration call chains by terminal state",
    ["operation", "state"],  # succeeded, blocked, exhausted
)

# Histograms
image_generation_duration_seconds = Histogram(
    "image_generation_duration_seconds",
    "Duration of a single generator call",
    ["operation"],
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120, 180),
)
