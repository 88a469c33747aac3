"""
Wait-time estimation for routing.

A counter's load score is its average service wait multiplied by its
backlog.  The average comes from the counter's own completed tokens of
the day, falling back to the whole facility's, then to
``settings.QUEUE_DEFAULT_WAIT_MINUTES``.
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from django.conf import settings
from django.db.models import Avg

from queueing.models import Counter, Token
from .queue import local_day


def counter_backlog(counter: Counter, *, day: Optional[date] = None) -> int:
    """Number of today's tokens at ``counter`` still WAITING or CALLED."""
    day = day or local_day()
    return Token.objects.filter(
        counter=counter, token_date=day, status__in=Token.ACTIVE_STATUSES
    ).count()


def _completed_average(day: date, counter: Optional[Counter] = None) -> Optional[float]:
    qs = Token.objects.filter(
        token_date=day, status=Token.STATUS_COMPLETED, actual_wait_time__isnull=False
    )
    if counter is not None:
        qs = qs.filter(counter=counter)
    return qs.aggregate(avg=Avg('actual_wait_time'))['avg']


def average_wait_minutes(counter: Optional[Counter] = None, *, day: Optional[date] = None) -> float:
    day = day or local_day()
    avg = None
    if counter is not None:
        avg = _completed_average(day, counter)
    if avg is None:
        avg = _completed_average(day)
    if avg is None:
        return float(settings.QUEUE_DEFAULT_WAIT_MINUTES)
    return float(avg)


def estimate_counter_load(counter: Counter, *, day: Optional[date] = None) -> float:
    """Return the load score of ``counter``; lower is better and an idle counter scores 0."""
    day = day or local_day()
    backlog = counter_backlog(counter, day=day)
    if backlog == 0:
        return 0.0
    return average_wait_minutes(counter, day=day) * backlog
