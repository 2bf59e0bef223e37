"""Prometheus metrics for money movements, OTP usage, ledger contention and notifications"""

from prometheus_client import Counter, Histogram

# Money movement metrics
money_movement_counter = Counter(
    "wallet_money_movement_total",
    "Balance-changing operations by kind and outcome",
    ["kind", "outcome"],  # kind: transfer | bill | deposit | withdraw | request; outcome: success | <error kind>
)

money_movement_amount_histogram = Histogram(
    "wallet_money_movement_amount_cents",
    "Amounts moved by successful operations",
    ["kind"],
    buckets=[1_000, 10_000, 50_000, 100_000, 500_000, 1_000_000, 5_000_000],
)

# OTP metrics
otp_issued_counter = Counter(
    "wallet_otp_issued_total",
    "One-time codes issued",
    ["purpose"],
)

otp_consumption_counter = Counter(
    "wallet_otp_consumption_total",
    "One-time code consumption attempts",
    ["purpose", "outcome"],  # accepted | rejected
)

# Ledger contention
ledger_conflict_counter = Counter(
    "wallet_ledger_conflicts_total",
    "Units of work retried because of lock or serialization conflicts",
)

# Notification delivery
notification_failure_counter = Counter(
    "wallet_notification_failures_total",
    "Notifications that could not be stored",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_money_movement(kind: str, outcome: str, amount_cents: int = 0) -> None:
    """Record the outcome of a balance-changing operation"""
    money_movement_counter.labels(kind=kind, outcome=outcome).inc()
    if outcome == "success":
        money_movement_amount_histogram.labels(kind=kind).observe(amount_cents)
