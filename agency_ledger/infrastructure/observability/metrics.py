"""Prometheus metrics for payment reviews, ledger activity and outbound calls"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Payment submission metrics
submission_counter = Counter(
    "ledger_payment_submissions_total",
    "Payment submissions created",
)

submission_conflict_counter = Counter(
    "ledger_payment_submission_conflicts_total",
    "Payment submissions refused because of existing state",
    ["reason"],  # already_paid | pending_exists
)

review_counter = Counter(
    "ledger_payment_reviews_total",
    "Payment submission reviews",
    ["outcome"],  # approved | rejected
)

approved_amount_counter = Counter(
    "ledger_payment_approved_amount_total",
    "Sum of approved installment payments",
)

# Transaction ledger metrics
transaction_counter = Counter(
    "ledger_transactions_recorded_total",
    "Manually recorded transactions",
    ["type"],  # income | expense
)

# Notification webhook metrics
notification_latency_histogram = Histogram(
    "notification_webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

notification_failure_counter = Counter(
    "notification_webhook_failures_total",
    "Failed notification deliveries",
)

# Storage API metrics
storage_failures_counter = Counter(
    "storage_failures_total",
    "Failed receipt storage calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_review(outcome: str, amount: Decimal) -> None:
    """Record review outcome; approved amounts feed the received-money counter"""
    review_counter.labels(outcome=outcome).inc()
    if outcome == "approved":
        approved_amount_counter.inc(float(amount))
