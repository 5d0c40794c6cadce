"""Prometheus metrics for monitoring payouts, withdrawals and provider performance"""

from prometheus_client import Counter, Histogram, Gauge

# Withdrawal metrics
withdrawal_counter = Counter(
    "stuvendor_withdrawal_total",
    "Vendor withdrawal attempts by outcome",
    ["outcome"],  # completed | failed | rejected | reconciliation_required
)

withdrawal_amount_bucket_counter = Counter(
    "stuvendor_withdrawal_amount_bucket",
    "Completed withdrawals by amount bucket",
    ["bucket"],  # <1k, 1k-10k, 10k-100k, 100k+ (major units)
)

stale_pending_withdrawals_gauge = Gauge(
    "stuvendor_stale_pending_withdrawals",
    "Pending withdrawals older than the grace period awaiting manual review",
)

# Split payment metrics
split_entries_counter = Counter(
    "stuvendor_split_entries_total",
    "Order split ledger entries created",
)

split_failures_counter = Counter(
    "stuvendor_split_failures_total",
    "Order splits rolled back",
)

# Auth metrics
auth_rejection_counter = Counter(
    "stuvendor_auth_rejections_total",
    "Rejected requests by reason",
    ["reason"],
)

# Provider API metrics
provider_latency_histogram = Histogram(
    "provider_transfer_latency_seconds",
    "Payment provider transfer response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

provider_failures_counter = Counter(
    "provider_failures_total",
    "Failed payment provider calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_withdrawal(outcome: str, amount_minor: int = 0) -> None:
    """Record withdrawal outcome and, for completed ones, the amount bucket"""
    withdrawal_counter.labels(outcome=outcome).inc()

    if outcome != "completed":
        return

    major = amount_minor // 100
    if major < 1_000:
        bucket = "<1k"
    elif major < 10_000:
        bucket = "1k-10k"
    elif major < 100_000:
        bucket = "10k-100k"
    else:
        bucket = "100k+"

    withdrawal_amount_bucket_counter.labels(bucket=bucket).inc()
