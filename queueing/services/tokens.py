"""
Token state machine.

Tokens move WAITING -> CALLED -> COMPLETED, and may be CANCELLED from
either active state.  COMPLETED and CANCELLED are terminal.  Every
change locks the token row, records a :class:`TokenTransition` and is
followed by a position update for the token's counter.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from queueing.exceptions import InvalidTransition, NotFound
from queueing.metrics import TOKEN_TRANSITIONS
from queueing.models import Counter, Token, TokenTransition, User
from queueing.notifications import push_to_patient
from .positions import notify_queue_positions
from .queue import QUEUE_ORDER
from .stats import invalidate_daily_stats

logger = logging.getLogger(__name__)

TRANSITIONS = {
    Token.STATUS_WAITING: (Token.STATUS_CALLED, Token.STATUS_CANCELLED),
    Token.STATUS_CALLED: (Token.STATUS_COMPLETED, Token.STATUS_CANCELLED),
    Token.STATUS_COMPLETED: (),
    Token.STATUS_CANCELLED: (),
}


def can_transition(current: str, new: str) -> bool:
    """Return True if a token may move from ``current`` to ``new``."""
    return new in TRANSITIONS.get(current, ())


def get_token(token_id: int) -> Token:
    token = Token.objects.select_related('patient', 'counter').filter(id=token_id).first()
    if not token:
        raise NotFound(f'token {token_id} not found')
    return token


def _apply(token: Token, target: str, operator: Optional[User], reason: str, now) -> None:
    previous = token.status
    token.status = target
    fields = ['status', 'updated_at']
    if target == Token.STATUS_CALLED:
        token.called_at = now
        token.actual_wait_time = max(0, int((now - token.created_at).total_seconds() // 60))
        token.called_by = operator
        fields += ['called_at', 'actual_wait_time', 'called_by']
    else:
        token.completed_at = now
        fields.append('completed_at')
    token.save(update_fields=fields)
    TokenTransition.objects.create(
        token=token, from_status=previous, to_status=target,
        operator=operator, timestamp=now, reason=reason or '',
    )


def _after_transition(token: Token) -> None:
    TOKEN_TRANSITIONS.labels(to_status=token.status).inc()
    invalidate_daily_stats(token.token_date)
    if token.status == Token.STATUS_CALLED:
        logger.info("token %s called at counter %s", token.token_number, token.counter_id)
        push_to_patient(
            token.patient,
            "It's your turn",
            f'Token {token.token_number}: please proceed to {token.counter.name}.',
            {'tokenId': token.id, 'tokenNumber': token.token_number},
        )
    elif token.status == Token.STATUS_COMPLETED:
        push_to_patient(
            token.patient,
            'Visit completed',
            f'Token {token.token_number} at {token.counter.name} is complete. Thank you.',
            {'tokenId': token.id, 'tokenNumber': token.token_number},
        )
    notify_queue_positions(token.counter_id)


def transition(token_id: int, target_status: str, *, operator: Optional[User] = None,
               reason: str = '', now=None) -> Token:
    """Move a token to ``target_status``.

    Raises :class:`NotFound` for an unknown token and
    :class:`InvalidTransition` (leaving the token untouched) for any move
    the state machine does not allow, including unknown status names.
    """
    target = str(target_status or '').upper()
    now = now or timezone.now()
    with transaction.atomic():
        token = Token.objects.select_for_update().filter(id=token_id).first()
        if not token:
            raise NotFound(f'token {token_id} not found')
        if not can_transition(token.status, target):
            raise InvalidTransition(f'cannot move token {token.token_number} from {token.status} to {target_status}')
        _apply(token, target, operator, reason, now)
    _after_transition(token)
    return token


def cancel_token(token_id: int, *, operator: Optional[User] = None, reason: str = '', now=None) -> Token:
    return transition(token_id, Token.STATUS_CANCELLED, operator=operator, reason=reason or 'cancelled', now=now)


def complete_token(token_id: int, *, operator: Optional[User] = None, reason: str = '', now=None) -> Token:
    return transition(token_id, Token.STATUS_COMPLETED, operator=operator, reason=reason or 'completed', now=now)


def resolve_counter(counter_or_staff_id: int, *, staff: bool = False) -> Counter:
    if staff:
        counter = Counter.objects.filter(assigned_user_id=counter_or_staff_id).first()
        if not counter:
            raise NotFound(f'no counter assigned to staff {counter_or_staff_id}')
        return counter
    counter = Counter.objects.filter(id=counter_or_staff_id).first()
    if not counter:
        raise NotFound(f'counter {counter_or_staff_id} not found')
    return counter


def call_next(counter_or_staff_id: int, *, staff: bool = False, operator: Optional[User] = None,
              now=None) -> Token:
    """Call the highest ranked WAITING token of a counter.

    ``counter_or_staff_id`` is a counter id, or with ``staff=True`` the id
    of the staff user whose assigned counter is meant.  If a concurrent
    caller takes the head token first the next one is tried, until the
    queue is empty.
    """
    counter = resolve_counter(counter_or_staff_id, staff=staff)
    now = now or timezone.now()
    # Each lost race means another caller served a token, so the loop ends
    while True:
        head = (
            Token.objects.filter(counter=counter, status=Token.STATUS_WAITING)
            .order_by(*QUEUE_ORDER).values_list('id', flat=True).first()
        )
        if head is None:
            raise NotFound(f'no waiting token at counter {counter.name!r}')
        with transaction.atomic():
            token = Token.objects.select_for_update().filter(id=head).first()
            if token is None or token.status != Token.STATUS_WAITING:
                continue
            _apply(token, Token.STATUS_CALLED, operator, 'call next', now)
        _after_transition(token)
        return token
