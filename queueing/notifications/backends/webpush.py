"""
Production backend: Web Push via pywebpush and SMS via Twilio.

Credentials come from settings (``VAPID_*`` and ``TWILIO_*``); see
``hospital_queue/settings.py``.  Provider errors propagate to the
caller, which logs them without failing the queue operation.
"""
import json
from typing import Optional

from django.conf import settings
from pywebpush import webpush
from twilio.rest import Client

from .base import BaseBackend


def format_phone(phone: str, country_code: Optional[str] = None) -> Optional[str]:
    """Return ``phone`` in E.164 form, or None if it cannot be a valid number.

    Local 10-digit numbers get the configured country code prefixed.
    """
    if not phone:
        return None
    if phone.strip().startswith('+'):
        digits = ''.join(c for c in phone if c.isdigit())
        return f'+{digits}' if len(digits) >= 8 else None
    digits = ''.join(c for c in phone if c.isdigit())
    if len(digits) == 10:
        return f"{country_code or settings.SMS_DEFAULT_COUNTRY_CODE}{digits}"
    return None


class WebPushBackend(BaseBackend):

    def __init__(self):
        self._sms_client = None

    def send_push(self, subscription, payload):
        webpush(
            subscription_info=subscription,
            data=json.dumps(payload),
            vapid_private_key=settings.VAPID_PRIVATE_KEY,
            vapid_claims={'sub': f'mailto:{settings.VAPID_CLAIM_EMAIL}'},
        )

    def send_sms(self, phone_number, message):
        to_number = format_phone(phone_number)
        if not to_number:
            raise ValueError(f'cannot send SMS to invalid phone number {phone_number!r}')
        if self._sms_client is None:
            if not (settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN and settings.TWILIO_FROM_NUMBER):
                raise RuntimeError('Twilio settings not configured')
            self._sms_client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        from_number = settings.TWILIO_FROM_NUMBER
        # A Messaging Service SID (MG...) replaces the sender number
        if from_number.upper().startswith('MG'):
            self._sms_client.messages.create(body=message, messaging_service_sid=from_number, to=to_number)
        else:
            self._sms_client.messages.create(body=message, from_=from_number, to=to_number)
