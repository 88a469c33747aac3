"""Aggregated statistics over the day's tokens."""
from __future__ import annotations

from datetime import date
from typing import Optional

from django.core.cache import cache
from django.db.models import Avg, Count

from queueing.models import Token
from .queue import local_day

DAILY_STATS_CACHE_KEY = 'queue:stats:daily:{day}'


def daily_stats_cache_key(day: date) -> str:
    return DAILY_STATS_CACHE_KEY.format(day=day.isoformat())


def invalidate_daily_stats(day: Optional[date] = None) -> None:
    cache.delete(daily_stats_cache_key(day or local_day()))


def get_daily_stats(*, day: Optional[date] = None) -> dict:
    day = day or local_day()
    tokens = Token.objects.filter(token_date=day)
    by_status = {row['status']: row['n'] for row in tokens.values('status').annotate(n=Count('id'))}
    by_priority = {p: 0 for p, _ in Token.PRIORITY_CHOICES}
    for row in tokens.values('priority').annotate(n=Count('id')):
        by_priority[row['priority']] = row['n']
    by_category = [
        {'categoryId': row['counter__category_id'], 'categoryName': row['counter__category__name'], 'count': row['n']}
        for row in tokens.values('counter__category_id', 'counter__category__name')
        .annotate(n=Count('id')).order_by('counter__category__name')
    ]
    avg = tokens.filter(status=Token.STATUS_COMPLETED, actual_wait_time__isnull=False) \
        .aggregate(avg=Avg('actual_wait_time'))['avg']
    return {
        'date': day.isoformat(),
        'totalTokens': sum(by_status.values()),
        'waitingTokens': by_status.get(Token.STATUS_WAITING, 0),
        'calledTokens': by_status.get(Token.STATUS_CALLED, 0),
        'completedTokens': by_status.get(Token.STATUS_COMPLETED, 0),
        'cancelledTokens': by_status.get(Token.STATUS_CANCELLED, 0),
        'averageWaitTime': round(float(avg), 2) if avg is not None else 0,
        'byPriority': by_priority,
        'byCategory': by_category,
    }
