"""Prometheus metrics for poll housekeeping.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter, Histogram

# Housekeeping outcome metrics
polls_soft_deleted_total = Counter(
    "pollkeeper_polls_soft_deleted_total",
    "Total number of inactive polls tombstoned by housekeeping"
)

polls_hard_deleted_total = Counter(
    "pollkeeper_polls_hard_deleted_total",
    "Total number of polls permanently removed by housekeeping",
    ["reason"]  # reason: demo|grace_period|manual
)

# Sweep execution metrics
sweep_duration_seconds = Histogram(
    "pollkeeper_sweep_duration_seconds",
    "Time spent on a full housekeeping sweep in seconds",
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 300.0]
)

sweep_failures_total = Counter(
    "pollkeeper_sweep_failures_total",
    "Total housekeeping sweep passes that failed and were rolled back",
    ["sweep_pass"]  # sweep_pass: demo_expiry|soft_delete|hard_delete|manual_delete
)
