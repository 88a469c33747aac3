from datetime import timedelta

import pytest
from django.core.cache import cache
from django.utils import timezone

from queueing.models import Counter, CounterCategory, Department, NotificationSubscription, Patient, Token, User
from queueing.notifications.backends import locmem


@pytest.fixture(autouse=True)
def _queue_settings(settings):
    settings.QUEUE_NOTIFICATION_BACKEND = 'queueing.notifications.backends.locmem.LocMemBackend'
    settings.QUEUE_DEFAULT_WAIT_MINUTES = 15
    settings.QUEUE_MINUTES_PER_TOKEN = 15
    settings.QUEUE_ROUTING_MAX_ATTEMPTS = 3
    settings.QUEUE_NOTIFY_RANKS = (1, 2, 3, 5)
    settings.QUEUE_SMS_RANK = 3
    locmem.outbox.clear()
    cache.clear()
    yield
    locmem.outbox.clear()


@pytest.fixture
def broadcasts(monkeypatch):
    """Record display broadcasts instead of sending them through a channel layer."""
    sent = []

    class RecordingLayer:
        async def group_send(self, group, event):
            sent.append((group, event))

    monkeypatch.setattr('queueing.realtime.broadcast.get_channel_layer', lambda: RecordingLayer())
    return sent


@pytest.fixture
def department(db):
    return Department.objects.create(name='Pharmacy')


@pytest.fixture
def pharmacy(department):
    return CounterCategory.objects.create(name='Pharmacy', department=department)


@pytest.fixture
def staff(db):
    return User.objects.create_user(username='pharm1', password='P@ssw0rd1', role='pharmacist')


@pytest.fixture
def make_counter(pharmacy):
    created = []

    def _make(name, category=None, status=Counter.STATUS_ACTIVE, **kwargs):
        # Strictly increasing creation times keep candidate order predictable
        kwargs.setdefault('created_at', timezone.now() - timedelta(days=30) + timedelta(minutes=len(created)))
        counter = Counter.objects.create(name=name, category=category or pharmacy, status=status, **kwargs)
        created.append(counter)
        return counter
    return _make


@pytest.fixture
def make_patient(db):
    def _make(name='Patient', phone='', subscribed=False):
        patient = Patient.objects.create(name=name, phone=phone)
        if subscribed:
            NotificationSubscription.objects.create(
                patient=patient,
                subscription={'endpoint': f'https://push.example.test/{patient.pk}', 'keys': {'p256dh': 'k', 'auth': 'a'}},
            )
        return patient
    return _make


@pytest.fixture
def make_token(db):
    """Insert a token directly, bypassing the router, with an explicit number."""
    numbers = iter(range(1001, 2000))

    def _make(counter, patient, status=Token.STATUS_WAITING, *, priority=Token.PRIORITY_NORMAL,
              created_at=None, actual_wait_time=None, number=None):
        created_at = created_at or timezone.now()
        return Token.objects.create(
            token_number=number or next(numbers),
            token_date=timezone.localdate(created_at),
            patient=patient,
            counter=counter,
            priority=priority,
            priority_weight=Token.PRIORITY_WEIGHTS[priority],
            status=status,
            estimated_wait_time=15,
            actual_wait_time=actual_wait_time,
            created_at=created_at,
        )
    return _make
