"""Prometheus counters for the queue; exported by django-prometheus at ``/metrics``."""
from prometheus_client import Counter as PromCounter

TOKENS_ISSUED = PromCounter(
    'queue_tokens_issued_total', 'Tokens created by the router', ['category'],
)
TOKEN_TRANSITIONS = PromCounter(
    'queue_token_transitions_total', 'Token status transitions', ['to_status'],
)
ROUTING_RETRIES = PromCounter(
    'queue_routing_retries_total', 'Routing transactions retried after a store conflict',
)
NOTIFICATIONS = PromCounter(
    'queue_notifications_total', 'Patient notification attempts', ['channel', 'outcome'],
)
