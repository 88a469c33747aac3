from django.conf import settings
from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..permissions import IsStaffRole
from ..services.queue import local_day
from ..services.stats import daily_stats_cache_key, get_daily_stats


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsStaffRole])
def daily_stats(request):
    """Today's token counts and average wait (cached briefly, dropped on every queue change)."""
    day = local_day()
    ck = daily_stats_cache_key(day)
    cached = cache.get(ck)
    if cached:
        return Response(cached)
    payload = {'ok': True, 'data': get_daily_stats(day=day)}
    cache.set(ck, payload, settings.QUEUE_STATS_CACHE_SECONDS)
    return Response(payload)
