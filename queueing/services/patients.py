"""Patient directory lookups and patient self-service."""
from __future__ import annotations

import re
from typing import Iterable

from django.db import transaction

from queueing.exceptions import InvalidRequest, NotFound
from queueing.models import NotificationSubscription, Patient, Token
from .queue import QUEUE_ORDER, format_token


def find_patient(patient_id: int) -> Patient:
    patient = Patient.objects.filter(id=patient_id).first()
    if not patient:
        raise NotFound(f'patient {patient_id} not found')
    return patient


def save_subscription(patient_ids: Iterable[int], subscription: dict) -> list[NotificationSubscription]:
    """Store ``subscription`` as the push channel of every patient in ``patient_ids``."""
    ids = list(dict.fromkeys(patient_ids or []))
    if not ids:
        raise InvalidRequest('patient ids are required')
    if not isinstance(subscription, dict) or not subscription.get('endpoint'):
        raise InvalidRequest('subscription must include an endpoint')
    found = set(Patient.objects.filter(id__in=ids).values_list('id', flat=True))
    missing = [pid for pid in ids if pid not in found]
    if missing:
        raise NotFound(f'patients not found: {missing}')
    saved = []
    with transaction.atomic():
        for pid in ids:
            obj, _ = NotificationSubscription.objects.update_or_create(
                patient_id=pid, defaults={'subscription': subscription}
            )
            saved.append(obj)
    return saved


def _digits(phone: str) -> str:
    return re.sub(r'\D', '', phone or '')


def verify_patient(patient_id: int, phone: str) -> bool:
    """True when ``phone`` matches the number on file, ignoring formatting and country code."""
    patient = Patient.objects.filter(id=patient_id).only('phone').first()
    if not patient or not patient.phone:
        return False
    given, stored = _digits(phone), _digits(patient.phone)
    if not given:
        return False
    return given[-10:] == stored[-10:]


def people_ahead(token: Token) -> int:
    """WAITING tokens ranked before ``token`` at its counter; 0 unless it is waiting itself."""
    if token.status != Token.STATUS_WAITING:
        return 0
    ahead = 0
    for tid in (Token.objects.filter(counter_id=token.counter_id, status=Token.STATUS_WAITING)
                .order_by(*QUEUE_ORDER).values_list('id', flat=True)):
        if tid == token.id:
            break
        ahead += 1
    return ahead


def patient_tokens(patient_id: int) -> list[dict]:
    patient = find_patient(patient_id)
    tokens = (
        Token.objects.select_related('patient', 'counter')
        .filter(patient=patient)
        .order_by('-created_at', '-id')
    )
    return [{**format_token(t), 'peopleAhead': people_ahead(t)} for t in tokens]
