"""
In-memory notification backend.

Like Django's locmem e-mail backend, every delivery is appended to the
module-level :data:`outbox` so tests can assert on what would have been
sent.  Clear it between tests with ``outbox.clear()``.
"""
from .base import BaseBackend

outbox: list[dict] = []


class LocMemBackend(BaseBackend):

    def send_push(self, subscription, payload):
        outbox.append({'channel': 'push', 'to': subscription, 'payload': payload})

    def send_sms(self, phone_number, message):
        outbox.append({'channel': 'sms', 'to': phone_number, 'message': message})
