"""
Email delivery over SMTP.
Delivery is best-effort: callers get False back on failure and decide
whether that matters.
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from boardguru.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Sends transactional email (registration, invitations, notifications)."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        use_tls: Optional[bool] = None
    ):
        self.smtp_host = smtp_host if smtp_host is not None else settings.SMTP_HOST
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.smtp_user = smtp_user if smtp_user is not None else settings.SMTP_USER
        self.smtp_password = smtp_password if smtp_password is not None else settings.SMTP_PASSWORD
        self.from_email = from_email or settings.EMAIL_FROM
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.email_enabled = bool(self.smtp_host)

    def send_email(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        """
        Send a single message with an HTML part and an optional plain-text part.

        Returns:
            True if the SMTP server accepted the message
        """
        if not self.email_enabled:
            logger.info(f"Email disabled, not sending '{subject}' to {to}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = self.from_email
            msg['To'] = to

            if text:
                msg.attach(MIMEText(text, 'plain'))
            msg.attach(MIMEText(html, 'html'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Sent email '{subject}' to {to}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to}: {e}")
            return False


_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
