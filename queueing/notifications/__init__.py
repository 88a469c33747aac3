"""
Patient notification dispatch.

The backend is chosen by ``settings.QUEUE_NOTIFICATION_BACKEND`` (a
dotted path, like Django's ``EMAIL_BACKEND``).  :func:`push_to_patient`
and :func:`sms_to_patient` are the only entry points the queue uses and
they never raise: a delivery failure is logged, counted and reported as
``False`` so the queue operation that triggered it still succeeds.
"""
import logging
from typing import Optional

from django.conf import settings
from django.utils.module_loading import import_string

from queueing.metrics import NOTIFICATIONS
from queueing.models import NotificationSubscription, Patient

logger = logging.getLogger(__name__)

_backends: dict = {}


def get_backend(path: Optional[str] = None):
    path = path or settings.QUEUE_NOTIFICATION_BACKEND
    backend = _backends.get(path)
    if backend is None:
        backend = _backends[path] = import_string(path)()
    return backend


def _subscription_for(patient: Patient) -> Optional[dict]:
    try:
        return patient.notification_subscription.subscription or None
    except NotificationSubscription.DoesNotExist:
        return None


def push_to_patient(patient: Patient, title: str, body: str, data: Optional[dict] = None) -> bool:
    """Send a push notification if the patient has subscribed; True when delivered."""
    subscription = _subscription_for(patient)
    if not subscription:
        NOTIFICATIONS.labels(channel='push', outcome='skipped').inc()
        return False
    payload = {'title': title, 'body': body, 'data': data or {}}
    try:
        get_backend().send_push(subscription, payload)
    except Exception:
        NOTIFICATIONS.labels(channel='push', outcome='failed').inc()
        logger.exception("push delivery to patient %s failed", patient.pk)
        return False
    NOTIFICATIONS.labels(channel='push', outcome='sent').inc()
    return True


def sms_to_patient(patient: Patient, message: str) -> bool:
    """Send an SMS if the patient has a phone number on file; True when delivered."""
    if not patient.phone:
        NOTIFICATIONS.labels(channel='sms', outcome='skipped').inc()
        return False
    try:
        get_backend().send_sms(patient.phone, message)
    except Exception:
        NOTIFICATIONS.labels(channel='sms', outcome='failed').inc()
        logger.exception("SMS delivery to patient %s failed", patient.pk)
        return False
    NOTIFICATIONS.labels(channel='sms', outcome='sent').inc()
    return True
