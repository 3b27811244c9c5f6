"""
Prometheus metrics

Everything lives on a dedicated registry so /metrics only exposes TerraVest
series. HTTP series are labelled with the route template (not the raw path)
to keep label cardinality bounded.
"""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CollectorRegistry
from starlette.requests import Request

metrics_registry = CollectorRegistry()

UNMATCHED_ROUTE = "unmatched"

http_requests_total = Counter(
    "terravest_http_requests_total",
    "HTTP requests by route template, method and status",
    ["route", "method", "status"],
    registry=metrics_registry,
)

http_request_duration_seconds = Histogram(
    "terravest_http_request_duration_seconds",
    "HTTP request latency",
    ["route", "method"],
    registry=metrics_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

rate_limited_total = Counter(
    "terravest_rate_limited_total",
    "Requests rejected by the rate limiter",
    ["group"],  # admin, api
    registry=metrics_registry,
)

wallet_movements_total = Counter(
    "terravest_wallet_movements_total",
    "Ledger entries written",
    ["type"],  # WalletTransactionType
    registry=metrics_registry,
)

insufficient_funds_total = Counter(
    "terravest_insufficient_funds_total",
    "Debits rejected because the balance was too low",
    registry=metrics_registry,
)

investment_actions_total = Counter(
    "terravest_investment_actions_total",
    "Investment lifecycle actions",
    ["product", "action"],  # action: open, mature, cancel, reinvest
    registry=metrics_registry,
)


def route_label(request: Request) -> str:
    """Template of the matched route (/api/markets/investments/{investment_id})"""
    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED_ROUTE


def record_http_request(route: str, method: str, status_code: int, duration_seconds: float) -> None:
    method = method.upper()
    http_requests_total.labels(route=route, method=method, status=str(status_code)).inc()
    http_request_duration_seconds.labels(route=route, method=method).observe(duration_seconds)


def record_rate_limit_exceeded(group: str) -> None:
    rate_limited_total.labels(group=group).inc()


def record_wallet_movement(tx_type: str) -> None:
    wallet_movements_total.labels(type=tx_type).inc()


def record_insufficient_funds() -> None:
    insufficient_funds_total.inc()


def record_investment_action(product: str, action: str) -> None:
    investment_actions_total.labels(product=product, action=action).inc()


def get_metrics_output() -> bytes:
    return generate_latest(metrics_registry)


__all__ = [
    "CONTENT_TYPE_LATEST",
    "get_metrics_output",
    "route_label",
    "record_http_request",
    "record_rate_limit_exceeded",
    "record_wallet_movement",
    "record_insufficient_funds",
    "record_investment_action",
]
