"""
URL mappings for the queue API.

Paths carry no trailing slash, matching the front-end client.
"""
from django.urls import include, path

from .auth_views import login_view
from .views import counters, health, patients, stats, tokens

urlpatterns = [
    path('api/auth/login', login_view, name='login_view'),

    path('api/tokens', tokens.create_token, name='token-create'),
    path('api/tokens/<int:token_id>', tokens.token_detail, name='token-detail'),
    path('api/tokens/<int:token_id>/status', tokens.token_update_status, name='token-status'),
    path('api/tokens/<int:token_id>/cancel', tokens.token_cancel, name='token-cancel'),
    path('api/queue/call-next', tokens.queue_call_next, name='queue-call-next'),

    path('api/stats/daily', stats.daily_stats, name='stats-daily'),

    path('api/counters/<int:counter_id>/waiting', counters.counter_waiting, name='counter-waiting'),
    path('api/counters/<int:counter_id>/details', counters.counter_details, name='counter-details'),
    path('api/counters/<int:counter_id>/display', counters.counter_display, name='counter-display'),
    path('api/categories/<int:category_id>/load', counters.category_load, name='category-load'),

    path('api/save-subscription', patients.save_push_subscription, name='save-subscription'),
    path('api/patient/tokens', patients.my_tokens, name='patient-tokens'),

    path('healthz', health.healthz, name='healthz'),
    path('', include('django_prometheus.urls')),
]
