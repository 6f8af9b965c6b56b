"""Best-effort notifications to patients and doctors."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol
from uuid import UUID

import structlog

logger = structlog.get_logger(__name__)


class RecipientKind(str, Enum):
    """Who a notification is addressed to."""

    PATIENT = "patient"
    DOCTOR = "doctor"


@dataclass(frozen=True)
class Notification:
    """A message waiting to be delivered after the booking commits."""

    recipient_id: UUID
    recipient_kind: RecipientKind
    message: str


class Notifier(Protocol):
    """Delivery channel for notifications."""

    async def notify(self, recipient_id: UUID, recipient_kind: RecipientKind, message: str) -> None:
        """Deliver one message."""


class LogNotifier:
    """Notifier that records messages in the application log."""

    async def notify(self, recipient_id: UUID, recipient_kind: RecipientKind, message: str) -> None:
        logger.info(
            "notification_sent",
            recipient_id=str(recipient_id),
            recipient_kind=recipient_kind.value,
            message=message,
        )


async def deliver_notifications(notifier: Notifier, notifications: list[Notification]) -> int:
    """
    Deliver notifications one by one, logging and skipping failures.

    Args:
        notifier: Delivery channel
        notifications: Messages to send

    Returns:
        Number of messages delivered
    """
    delivered = 0
    for note in notifications:
        try:
            await notifier.notify(note.recipient_id, note.recipient_kind, note.message)
            delivered += 1
        except Exception as e:
            # Never surfaces to the caller; the booking is already committed
            logger.warning(
                "notification_failed",
                recipient_id=str(note.recipient_id),
                recipient_kind=note.recipient_kind.value,
                error=str(e),
            )
    return delivered


def get_notifier() -> Notifier:
    """Dependency returning the configured notifier."""
    return LogNotifier()
