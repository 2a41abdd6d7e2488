"""Submission toasts: what the submitter sees after the backend answers.

A toast is addressed to the submitter's recipient key and delivered through
the ToastHub to their own notification streams. Extra observers (e.g. a
moderation feed) can register a channel; they receive every toast together
with its recipient. The submission service calls the notifier, never the hub.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Callable, Coroutine, Optional

from reviewgate.submission.events import ToastHub, toast_hub

logger = logging.getLogger(__name__)

SUBMISSION_ACCEPTED = "submission_accepted"
SUBMISSION_FAILED = "submission_failed"


@dataclass
class Toast:
    event: str
    kind: str  # "review" or "comment"
    target_id: str
    message: str
    level: str  # "success" or "error"
    suggestion: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


Channel = Callable[[Optional[str], Toast], Coroutine[Any, Any, None]]


class SubmissionNotifier:
    """Sends submission toasts to the submitter and to registered observers.

    Observer failures are logged but never break a submission.
    """

    def __init__(self, hub: Optional[ToastHub] = None) -> None:
        self._hub = hub or toast_hub
        self._channels: list[Channel] = []

    def register_channel(self, callback: Channel) -> None:
        self._channels.append(callback)

    async def send(self, recipient: Optional[str], toast: Toast) -> int:
        """Deliver a toast. Returns how many of the submitter's streams got it.

        Submissions without a recipient key (a guest who never opened a
        stream) still reach the observers.
        """
        delivered = self._hub.send(recipient, toast.to_dict()) if recipient else 0

        for channel in self._channels:
            try:
                await channel(recipient, toast)
            except Exception:
                logger.warning(
                    "Notification channel failed for %s toast", toast.event,
                    exc_info=True,
                )
        return delivered

    async def accepted(
        self, recipient: Optional[str], kind: str, target_id: str, message: str
    ) -> int:
        """Tell the submitter their review or comment was saved."""
        return await self.send(
            recipient,
            Toast(SUBMISSION_ACCEPTED, kind, target_id, message, level="success"),
        )

    async def failed(
        self,
        recipient: Optional[str],
        kind: str,
        target_id: str,
        message: str,
        suggestion: str | None = None,
    ) -> int:
        """Surface a backend rejection or transport failure as a dismissible toast."""
        return await self.send(
            recipient,
            Toast(
                SUBMISSION_FAILED, kind, target_id, message,
                level="error", suggestion=suggestion,
            ),
        )


# Module-level singleton
notifier = SubmissionNotifier()
