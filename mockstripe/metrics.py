from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "mockstripe_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "mockstripe_request_latency_seconds",
    "HTTP request latency in seconds",
    ["method", "path", "status"],
)
REQUEST_ERRORS = Counter(
    "mockstripe_request_errors_total",
    "HTTP requests that ended with a 5xx status",
    ["method", "path", "status"],
)
STRIPE_ERRORS = Counter(
    "mockstripe_stripe_errors_total",
    "Stripe-shaped errors returned to clients",
    ["type", "code"],
)
IDEMPOTENT_REPLAYS = Counter(
    "mockstripe_idempotent_replays_total",
    "Requests answered from the idempotency cache",
)
DEFERRED_TASK_FAILURES = Counter(
    "mockstripe_deferred_task_failures_total",
    "Deferred side effects that raised",
)
