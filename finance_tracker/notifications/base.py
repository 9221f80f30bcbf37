# finance_tracker/notifications/base.py
from abc import ABC, abstractmethod


class NotificationError(Exception):
    """Raised by a notifier when a message could not be delivered."""


class BaseNotifier(ABC):
    @abstractmethod
    def send_password_reset(self, email, token, reset_url):
        """
        Deliver a password reset link to email.
        Must raise NotificationError if delivery fails.
        """
        pass
