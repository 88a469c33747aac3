"""Helpers shared by the queue services: the local day and the derived waiting set."""
from __future__ import annotations

from datetime import date
from typing import Optional

from django.db.models import QuerySet
from django.utils import timezone

from queueing.models import Token

# Authoritative order of a counter's queue; priority and created_at never change after issue
QUEUE_ORDER = ('-priority_weight', 'created_at', 'id')


def local_day(now=None) -> date:
    return timezone.localdate(now or timezone.now())


def waiting_set(counter_id: int) -> QuerySet:
    """Tokens of a counter that are still pending (WAITING or CALLED), in queue order."""
    return (
        Token.objects.select_related('patient', 'counter')
        .filter(counter_id=counter_id, status__in=Token.ACTIVE_STATUSES)
        .order_by(*QUEUE_ORDER)
    )


def waiting_only(counter_id: int) -> QuerySet:
    return waiting_set(counter_id).filter(status=Token.STATUS_WAITING)


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def format_token(token: Token) -> dict:
    return {
        'id': token.id,
        'tokenNumber': token.token_number,
        'tokenDate': token.token_date.isoformat(),
        'patientId': token.patient_id,
        'patientName': token.patient.name,
        'counterId': token.counter_id,
        'counterName': token.counter.name,
        'categoryId': token.counter.category_id,
        'priority': token.priority,
        'status': token.status,
        'estimatedWaitTime': token.estimated_wait_time,
        'actualWaitTime': token.actual_wait_time,
        'notes': token.notes,
        'createdAt': _iso(token.created_at),
        'calledAt': _iso(token.called_at),
        'completedAt': _iso(token.completed_at),
    }
