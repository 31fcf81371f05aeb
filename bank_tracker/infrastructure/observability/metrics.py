"""Prometheus metrics for ledger activity, backend failures and HTTP latency"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_mutation_counter = Counter(
    "bank_tracker_ledger_mutations_total",
    "Ledger commands that changed state",
    ["entity", "action"],  # account|card|transaction|installment, create|update|delete
)

transaction_amount_histogram = Histogram(
    "bank_tracker_transaction_amount",
    "Amount of recorded transactions",
    ["kind"],  # income | expense
    buckets=[10, 50, 100, 500, 1000, 5000, 10000],
)

installments_generated_counter = Counter(
    "bank_tracker_installments_generated_total",
    "Installment records generated for card purchases",
)

# Backend metrics
gateway_failures_counter = Counter(
    "bank_tracker_gateway_failures_total",
    "Persistence backend calls that failed",
)

sign_in_counter = Counter(
    "bank_tracker_sign_in_total",
    "Sign-in attempts",
    ["outcome"],  # success | rejected
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_mutation(entity: str, action: str) -> None:
    ledger_mutation_counter.labels(entity=entity, action=action).inc()


def record_transaction(kind: str, amount: float, installments: int) -> None:
    """Record a new transaction and any installments generated for it"""
    record_mutation("transaction", "create")
    transaction_amount_histogram.labels(kind=kind).observe(amount)
    if installments > 1:
        installments_generated_counter.inc(installments)
