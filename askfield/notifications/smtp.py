"""
SMTP delivery for account notifications.

Delivery is attempted once; there is no retry policy. Failures are raised
as ``UpstreamNotificationError`` and the caller decides whether they matter.
"""
import asyncio
import logging
import smtplib
import socket
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from ..auth.exceptions import UpstreamNotificationError
from ..config import Settings
from .base import Notification, NotificationSink
from .templates import render

# Set up logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MailConfig:
    """
    Everything the SMTP sink needs to know.

    Fields:
    - server, port: SMTP endpoint
    - username, password: SMTP credentials
    - sender: From address
    - sender_name: From display name
    - starttls: Whether to upgrade the connection with STARTTLS
    - timeout: Connection timeout in seconds
    - app_name: Product name used in subjects and templates
    """
    server: Optional[str]
    port: int
    username: Optional[str]
    password: Optional[str]
    sender: Optional[str]
    sender_name: str
    starttls: bool = True
    timeout: int = 30
    app_name: str = "Askfield"

    @classmethod
    def from_settings(cls, settings: Settings) -> "MailConfig":
        return cls(
            server=settings.mail_server,
            port=settings.mail_port,
            username=settings.mail_username,
            password=settings.mail_password,
            sender=settings.mail_from,
            sender_name=settings.mail_from_name,
            starttls=settings.mail_starttls,
            timeout=settings.mail_timeout,
            app_name=settings.app_name,
        )

    def is_complete(self) -> bool:
        """
        Validates that all required email configuration values are set.

        Returns:
            bool: True if all required config is present, False otherwise
        """
        return all([self.server, self.username, self.password, self.sender])


class SmtpNotificationSink(NotificationSink):
    """Delivers notifications as HTML + plain text emails over SMTP."""

    def __init__(self, config: MailConfig):
        self.config = config

    def build_message(self, notification: Notification) -> MIMEMultipart:
        rendered = render(notification, self.config.app_name)
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((self.config.sender_name, self.config.sender))
        msg["To"] = notification.recipient
        msg["Subject"] = rendered.subject
        msg.attach(MIMEText(rendered.text, "plain"))
        msg.attach(MIMEText(rendered.html, "html"))
        return msg

    async def send(self, notification: Notification) -> None:
        """
        Send a notification email.

        Args:
            notification: What to send and to whom

        Raises:
            UpstreamNotificationError: If configuration is incomplete or delivery fails
        """
        if not self.config.is_complete():
            logger.error("Missing email configuration, cannot send notification")
            raise UpstreamNotificationError(error="Email configuration is incomplete")

        msg = self.build_message(notification)
        logger.info(f"Sending {notification.kind.value} email to {notification.recipient}")
        # smtplib is blocking, keep it off the event loop
        await asyncio.to_thread(self._deliver, msg)
        logger.info(f"{notification.kind.value.capitalize()} email sent to {notification.recipient}")

    def _deliver(self, msg: MIMEMultipart) -> None:
        config = self.config
        try:
            with smtplib.SMTP(config.server, config.port, timeout=config.timeout) as server:
                server.ehlo()
                if config.starttls:
                    server.starttls(context=ssl.create_default_context())
                    server.ehlo()
                server.login(config.username, config.password)
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {str(e)}")
            raise UpstreamNotificationError(error="Email authentication failed") from e
        except smtplib.SMTPRecipientsRefused as e:
            logger.error(f"SMTP recipients refused: {str(e)}")
            raise UpstreamNotificationError(error="Recipient address rejected") from e
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            logger.error(f"SMTP delivery failed: {str(e)}")
            raise UpstreamNotificationError(error="Email service temporarily unavailable") from e
