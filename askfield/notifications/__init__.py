"""
Outbound notifications.

The auth flows only see the ``NotificationSink`` interface; the SMTP
implementation and its configuration are built per request from settings.
"""
from .base import Notification, NotificationKind, NotificationSink
from .smtp import MailConfig, SmtpNotificationSink

__all__ = [
    "MailConfig",
    "Notification",
    "NotificationKind",
    "NotificationSink",
    "SmtpNotificationSink",
]
