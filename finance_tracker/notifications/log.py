# finance_tracker/notifications/log.py
import logging

from finance_tracker.notifications.base import BaseNotifier

logger = logging.getLogger(__name__)


class LogNotifier(BaseNotifier):
    """
    Development notifier: writes the reset link to the log instead of
    sending mail.
    """
    def __init__(self, config=None):
        self.config = config or {}

    def send_password_reset(self, email, token, reset_url):
        logger.info("Password reset link for %s: %s", email, reset_url)
