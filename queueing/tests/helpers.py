from django.utils import timezone

from queueing.notifications.backends.base import BaseBackend


class FailingBackend(BaseBackend):
    """Every delivery raises, as an unreachable provider would."""

    def send_push(self, subscription, payload):
        raise ConnectionError('push provider unreachable')

    def send_sms(self, phone_number, message):
        raise ConnectionError('sms provider unreachable')


def at(hour, minute=0, second=0):
    """Today at the given local wall-clock time."""
    return timezone.localtime().replace(hour=hour, minute=minute, second=second, microsecond=0)
