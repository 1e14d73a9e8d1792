"""
Profile change notifications.

Views that show profile data (header avatar, dashboard currency) register
a callback and are told when the profile is saved.
"""

from typing import Callable

import structlog

from subscription_tracker.models import Profile

ProfileListener = Callable[[Profile], None]


class ProfileEvents:
    """Explicit observer registry for profile updates."""

    def __init__(self):
        self._subscribers: list[ProfileListener] = []
        self._logger = structlog.get_logger()

    def subscribe(self, callback: ProfileListener) -> Callable[[], None]:
        """Register ``callback``; returns a function that removes it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, profile: Profile) -> int:
        """
        Notify subscribers in registration order.

        A subscriber that raises is logged and skipped.
        Returns the number of subscribers notified successfully.
        """
        delivered = 0
        for callback in list(self._subscribers):
            try:
                callback(profile)
                delivered += 1
            except Exception as e:
                self._logger.error(
                    "profile_subscriber_failed",
                    user_id=profile.user_id,
                    error=str(e),
                )
        return delivered
