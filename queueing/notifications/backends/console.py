"""
Console notification backend.

Logs every push and SMS instead of delivering it.  This is the default
outside production so that a fresh checkout never contacts a real
provider.
"""
import logging

from .base import BaseBackend

logger = logging.getLogger(__name__)


class ConsoleBackend(BaseBackend):

    def send_push(self, subscription, payload):
        logger.info("PUSH to %s: %s", subscription.get('endpoint', '<no endpoint>'), payload)

    def send_sms(self, phone_number, message):
        logger.info("SMS to %s: %s", phone_number, message)
