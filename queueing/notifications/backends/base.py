class BaseBackend:
    """Delivery channel for patient notifications.

    Both methods are fire-and-forget from the queue's point of view:
    implementations may raise on transport errors and callers in
    :mod:`queueing.notifications` catch and log them.
    """

    def send_push(self, subscription: dict, payload: dict) -> None:
        raise NotImplementedError

    def send_sms(self, phone_number: str, message: str) -> None:
        raise NotImplementedError
