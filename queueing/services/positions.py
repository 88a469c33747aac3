"""
Position notifier.

After a counter's queue changes, WAITING patients at certain ranks are
told how close they are: a push at every rank in
``settings.QUEUE_NOTIFY_RANKS`` and an SMS at ``settings.QUEUE_SMS_RANK``.
Notifications are not deduplicated; calling this twice with the same
queue sends them twice.
"""
from __future__ import annotations

import logging

from django.conf import settings

from queueing.notifications import push_to_patient, sms_to_patient
from queueing.realtime.broadcast import broadcast_counter_update
from .queue import waiting_only

logger = logging.getLogger(__name__)


def _position_message(rank: int, token_number: int, counter_name: str) -> str:
    if rank == 1:
        return f'Token {token_number}: you are next at {counter_name}.'
    return f'Token {token_number}: you are {rank} away at {counter_name}.'


def notify_queue_positions(counter_id: int) -> None:
    """Notify waiting patients of ``counter_id`` at the configured ranks, then refresh displays."""
    notify_ranks = set(settings.QUEUE_NOTIFY_RANKS)
    sms_rank = settings.QUEUE_SMS_RANK
    try:
        waiting = list(waiting_only(counter_id))
    except Exception:
        logger.exception("could not load the queue of counter %s", counter_id)
        return
    for rank, token in enumerate(waiting, start=1):
        if rank not in notify_ranks and rank != sms_rank:
            continue
        message = _position_message(rank, token.token_number, token.counter.name)
        if rank in notify_ranks:
            push_to_patient(
                token.patient,
                'Queue update',
                message,
                {'tokenId': token.id, 'tokenNumber': token.token_number, 'rank': rank},
            )
        if rank == sms_rank:
            sms_to_patient(token.patient, message)
    broadcast_counter_update(counter_id)
