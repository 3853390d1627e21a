"""
Lifecycle notifications.

Moderation and profile services publish events here after a state change;
counters, toasts and emails subscribe to them. Delivery is best effort: a
failing listener is logged and never fails the transition that triggered it.
"""

import enum
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)


class NotificationEvent(str, enum.Enum):
    PROFILE_SUBMITTED = "profile_submitted"
    PROFILE_EDITED = "profile_edited"
    PROFILE_APPROVED = "profile_approved"
    PROFILE_REJECTED = "profile_rejected"
    PROFILE_DELETED = "profile_deleted"
    USER_RESTRICTED = "user_restricted"
    USER_UNRESTRICTED = "user_unrestricted"
    USER_BANNED = "user_banned"
    USER_UNBANNED = "user_unbanned"
    USER_VERIFIED = "user_verified"
    USER_VERIFICATION_DENIED = "user_verification_denied"
    TRANSACTION_APPROVED = "transaction_approved"
    TRANSACTION_REJECTED = "transaction_rejected"


Listener = Callable[[NotificationEvent, Dict[str, Any]], Awaitable[None]]


class LifecycleNotifier:
    """In-process publish/subscribe hub for lifecycle events."""

    def __init__(self) -> None:
        self._listeners: DefaultDict[NotificationEvent, List[Listener]] = defaultdict(list)

    def subscribe(self, event: NotificationEvent, listener: Listener) -> None:
        self._listeners[event].append(listener)

    def unsubscribe(self, event: NotificationEvent, listener: Listener) -> None:
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def clear(self) -> None:
        self._listeners.clear()

    async def publish(self, event: NotificationEvent, payload: Dict[str, Any]) -> None:
        logger.info("Lifecycle event %s: %s", event.value, payload)
        for listener in list(self._listeners[event]):
            try:
                await listener(event, payload)
            except Exception:
                # Notification failures must not undo a committed transition
                logger.exception(
                    "Listener %r failed for %s", listener, event.value
                )


notifier = LifecycleNotifier()


def get_notifier() -> LifecycleNotifier:
    """FastAPI dependency returning the process-wide notifier."""
    return notifier
