# finance_tracker/notifications/smtp.py

import logging
import smtplib
from email.message import EmailMessage

from finance_tracker.notifications.base import BaseNotifier, NotificationError

logger = logging.getLogger(__name__)

SUBJECT = "Password Reset Request"

TEXT_BODY = """\
Password Reset Request

Hello,

You requested a password reset for your Fintrack account.

Open the link below to reset your password:
{reset_url}

This link will expire in {ttl} minutes.

If you didn't request this password reset, please ignore this email.
"""

HTML_BODY = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Password Reset Request</h2>
  <p>You requested a password reset for your Fintrack account.</p>
  <p><a href="{reset_url}">Reset Password</a></p>
  <p>If the link doesn't work, copy and paste this address into your browser:</p>
  <p style="word-break: break-all;">{reset_url}</p>
  <p>This link will expire in {ttl} minutes.</p>
  <p>If you didn't request this password reset, please ignore this email.</p>
</div>
"""


class SMTPNotifier(BaseNotifier):
    """
    Sends password reset links through an SMTP relay.
    Delivery is synchronous: send_password_reset returns only after the
    relay accepted the message.
    """
    def __init__(self, config):
        smtp = config.get('smtp', {})
        self.host = smtp.get('host', 'localhost')
        self.port = int(smtp.get('port', 587))
        self.username = smtp.get('username')
        self.password = smtp.get('password')
        self.sender = smtp.get('sender', 'noreply@fintrack.local')
        self.use_tls = bool(smtp.get('use_tls', True))
        self.timeout = float(smtp.get('timeout', 10))
        self.ttl = config.get('reset_token_ttl_minutes', 60)

    def build_message(self, email, reset_url):
        msg = EmailMessage()
        msg['Subject'] = SUBJECT
        msg['From'] = self.sender
        msg['To'] = email
        msg.set_content(TEXT_BODY.format(reset_url=reset_url, ttl=self.ttl))
        msg.add_alternative(
            HTML_BODY.format(reset_url=reset_url, ttl=self.ttl), subtype='html'
        )
        return msg

    def send_password_reset(self, email, token, reset_url):
        msg = self.build_message(email, reset_url)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password or '')
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"Could not send reset email to {email}: {exc}") from exc
        logger.info("Password reset email sent to %s", email)
