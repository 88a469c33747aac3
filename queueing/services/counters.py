"""Counter registry lookups and the per-counter views used by staff screens and displays."""
from __future__ import annotations

from datetime import date
from typing import Optional

from queueing.exceptions import NotFound
from queueing.models import Counter, CounterCategory, Token
from .estimator import average_wait_minutes, counter_backlog
from .queue import format_token, local_day, waiting_only, waiting_set

RECENT_COMPLETED_LIMIT = 5


def get_counter(counter_id: int) -> Counter:
    counter = Counter.objects.select_related('category').filter(id=counter_id).first()
    if not counter:
        raise NotFound(f'counter {counter_id} not found')
    return counter


def get_category(category_id: int) -> CounterCategory:
    category = CounterCategory.objects.filter(id=category_id).first()
    if not category:
        raise NotFound(f'category {category_id} not found')
    return category


def list_active_counters(category_id: int, *, lock: bool = False) -> list[Counter]:
    """ACTIVE counters of a category in creation order.

    With ``lock=True`` the rows are locked for the rest of the current
    transaction so concurrent routing into the same category serializes.
    """
    qs = Counter.objects.filter(category_id=category_id, status=Counter.STATUS_ACTIVE)
    if lock:
        qs = qs.select_for_update()
    return list(qs.order_by('created_at', 'id'))


def format_counter(counter: Counter) -> dict:
    return {
        'id': counter.id,
        'name': counter.name,
        'location': counter.location,
        'status': counter.status,
        'categoryId': counter.category_id,
        'departmentId': counter.department_id,
        'assignedUserId': counter.assigned_user_id,
    }


def get_counter_waiting_list(counter_id: int) -> list[Token]:
    get_counter(counter_id)
    return list(waiting_set(counter_id))


def get_counter_queue_details(counter_id: int, *, now=None) -> dict:
    """Current, upcoming and recently completed tokens for the staff queue screen."""
    counter = get_counter(counter_id)
    current = (
        Token.objects.select_related('patient', 'counter')
        .filter(counter=counter, status=Token.STATUS_CALLED)
        .order_by('-called_at', '-id')
        .first()
    )
    recent = (
        Token.objects.select_related('patient', 'counter')
        .filter(counter=counter, status=Token.STATUS_COMPLETED, token_date=local_day(now))
        .order_by('-completed_at', '-id')[:RECENT_COMPLETED_LIMIT]
    )
    return {
        'counter': format_counter(counter),
        'current': format_token(current) if current else None,
        'next': [format_token(t) for t in waiting_only(counter.id)],
        'recent': [format_token(t) for t in recent],
    }


def get_display_data(counter_id: int) -> dict:
    """Token numbers shown on the public display of a counter."""
    counter = get_counter(counter_id)
    current = (
        Token.objects.filter(counter=counter, status=Token.STATUS_CALLED)
        .order_by('-called_at', '-id')
        .values_list('token_number', flat=True)
        .first()
    )
    waiting = [str(n) for n in waiting_only(counter.id).values_list('token_number', flat=True)]
    return {
        'counterId': counter.id,
        'counterName': counter.name,
        'current': str(current) if current is not None else None,
        'next': waiting[0] if waiting else None,
        'queue': waiting[1:],
    }


def list_category_load(category_id: int, *, day: Optional[date] = None) -> list[dict]:
    get_category(category_id)
    day = day or local_day()
    data = []
    for counter in list_active_counters(category_id):
        backlog = counter_backlog(counter, day=day)
        avg = average_wait_minutes(counter, day=day)
        data.append({
            **format_counter(counter),
            'backlog': backlog,
            'averageWaitTime': round(avg, 2),
            'loadScore': round(avg * backlog, 2),
        })
    return data
