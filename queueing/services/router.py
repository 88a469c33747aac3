"""
Queue routing: turn an arrival into a token at the least loaded counter.

Counter choice and token numbering run in one transaction.  The active
counters of the category and the day's :class:`TokenSequence` row are
locked, so numbering is an atomic per-day sequence; the unique
``(token_date, token_number)`` constraint backs it up.  Store conflicts
retry the whole transaction a bounded number of times.
"""
from __future__ import annotations

import logging
import random
import time
from typing import Optional

from django.conf import settings
from django.db import IntegrityError, OperationalError, transaction
from django.utils import timezone

from queueing.exceptions import InvalidRequest, NoAvailableCounter, RoutingFailed
from queueing.metrics import ROUTING_RETRIES, TOKENS_ISSUED
from queueing.models import CounterCategory, Patient, Token, TokenSequence, TokenTransition, User
from queueing.notifications import push_to_patient
from .counters import get_category, list_active_counters
from .estimator import counter_backlog, estimate_counter_load
from .patients import find_patient
from .positions import notify_queue_positions
from .queue import local_day
from .stats import invalidate_daily_stats

logger = logging.getLogger(__name__)

RETRY_BACKOFF_SECONDS = 0.05


def normalize_priority(priority: Optional[str]) -> str:
    if priority in (None, ''):
        return Token.PRIORITY_NORMAL
    value = str(priority).upper()
    if value not in Token.PRIORITY_WEIGHTS:
        raise InvalidRequest(f'unknown priority {priority!r}')
    return value


def estimate_wait_minutes(queue_length: int) -> int:
    per_token = settings.QUEUE_MINUTES_PER_TOKEN
    return max(per_token, queue_length * per_token)


def _next_token_number(day) -> int:
    seq, _ = TokenSequence.objects.select_for_update().get_or_create(day=day)
    seq.last_number += 1
    seq.save(update_fields=['last_number'])
    return seq.last_number


def _create_token(patient: Patient, category: CounterCategory, priority: str,
                  notes: str, issued_by: Optional[User], now) -> Token:
    day = local_day(now)
    with transaction.atomic():
        candidates = list_active_counters(category.id, lock=True)
        if not candidates:
            raise NoAvailableCounter(f'no active counter in category {category.name!r}')
        # A zero average wait makes busy counters score 0 too; backlog breaks that tie.
        # min() keeps the first of fully equal keys, i.e. the oldest counter
        loads = {c.id: (estimate_counter_load(c, day=day), counter_backlog(c, day=day)) for c in candidates}
        counter = min(candidates, key=lambda c: loads[c.id])
        queue_length = loads[counter.id][1]
        token = Token.objects.create(
            token_number=_next_token_number(day),
            token_date=day,
            patient=patient,
            counter=counter,
            priority=priority,
            priority_weight=Token.PRIORITY_WEIGHTS[priority],
            status=Token.STATUS_WAITING,
            estimated_wait_time=estimate_wait_minutes(queue_length),
            notes=notes or '',
            issued_by=issued_by,
            created_at=now,
        )
        TokenTransition.objects.create(
            token=token,
            from_status=None,
            to_status=Token.STATUS_WAITING,
            operator=issued_by,
            timestamp=now,
            reason='issued',
        )
    return token


def route_arrival(patient_id: int, category_id: int, priority: Optional[str] = None, *,
                  notes: str = '', issued_by: Optional[User] = None, now=None) -> Token:
    """Issue a token for ``patient_id`` at the least loaded active counter of ``category_id``.

    Raises :class:`NotFound` for an unknown patient or category,
    :class:`NoAvailableCounter` when the category has no active counter
    and :class:`RoutingFailed` once the retry budget is spent.
    Notifications are sent after the transaction commits and never make
    routing fail.
    """
    patient = find_patient(patient_id)
    category = get_category(category_id)
    priority = normalize_priority(priority)
    now = now or timezone.now()

    max_attempts = settings.QUEUE_ROUTING_MAX_ATTEMPTS
    token = None
    for attempt in range(1, max_attempts + 1):
        try:
            token = _create_token(patient, category, priority, notes, issued_by, now)
            break
        except (IntegrityError, OperationalError) as exc:
            ROUTING_RETRIES.inc()
            logger.warning(
                "routing conflict for patient %s in category %s (attempt %d/%d): %s",
                patient.pk, category.pk, attempt, max_attempts, exc,
            )
            if attempt < max_attempts:
                time.sleep(random.uniform(0, RETRY_BACKOFF_SECONDS * attempt))
    if token is None:
        raise RoutingFailed()

    TOKENS_ISSUED.labels(category=category.name).inc()
    logger.info("issued token %s at counter %s for patient %s",
                token.token_number, token.counter_id, patient.pk)
    invalidate_daily_stats()
    push_to_patient(
        patient,
        'Token created',
        f'Your token number is {token.token_number} at {token.counter.name}. '
        f'Estimated wait: {token.estimated_wait_time} minutes.',
        {'tokenId': token.id, 'tokenNumber': token.token_number},
    )
    notify_queue_positions(token.counter_id)
    return token
