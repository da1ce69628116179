"""
Notification value types and the sink interface.
"""
import enum
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class NotificationKind(str, enum.Enum):
    """Template kinds the auth flows emit."""
    VERIFICATION = "verification"
    WELCOME = "welcome"


@dataclass(frozen=True)
class Notification:
    """
    A single message for the sink to deliver.

    Fields:
    - recipient: Email address of the account
    - kind: Which template to render
    - token: Raw verification token, for verification messages
    - link: Call-to-action URL already built by the caller
    - context: Extra template values (first_name, last_name, role)
    """
    recipient: str
    kind: NotificationKind
    token: Optional[str] = None
    link: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)


class NotificationSink:
    """
    Interface for notification delivery.

    Implementations raise ``UpstreamNotificationError`` when delivery fails;
    whether that failure is fatal is decided by the caller.
    """

    async def send(self, notification: Notification) -> None:
        raise NotImplementedError
