"""Per-recipient toast inboxes for the submission notification stream.

A toast belongs to whoever submitted: a signed-in member (``user:<id>``) or a
guest browser identified by its client key (``client:<key>``). Each open SSE
connection holds one Inbox registered under its recipient key, so a toast is
only ever delivered to the submitter's own tabs.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Optional

from reviewgate.exceptions import NotificationLimitError

# Open streams allowed per recipient (browser tabs) and in total
MAX_INBOXES_PER_RECIPIENT = 5
MAX_INBOXES = 500

# Undelivered toasts kept per inbox; older ones are dropped first
INBOX_SIZE = 20


class Inbox:
    """Bounded toast queue for one open notification stream."""

    def __init__(self, hub: ToastHub, recipient: str, size: int) -> None:
        self.recipient = recipient
        self._hub = hub
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=size)
        self.dropped = 0

    def deliver(self, toast: dict) -> None:
        # A stale toast is worth less than the newest one
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
        self._queue.put_nowait(toast)

    async def next_toast(self) -> dict:
        return await self._queue.get()

    def __aiter__(self) -> Inbox:
        return self

    async def __anext__(self) -> dict:
        return await self.next_toast()

    def close(self) -> None:
        self._hub.release(self)


class ToastHub:
    """Routes toasts to the inboxes of a single recipient."""

    def __init__(
        self,
        max_per_recipient: int = MAX_INBOXES_PER_RECIPIENT,
        max_inboxes: int = MAX_INBOXES,
        inbox_size: int = INBOX_SIZE,
    ) -> None:
        self._inboxes: dict[str, list[Inbox]] = defaultdict(list)
        self._max_per_recipient = max_per_recipient
        self._max_inboxes = max_inboxes
        self._inbox_size = inbox_size

    def open_count(self, recipient: Optional[str] = None) -> int:
        if recipient is not None:
            return len(self._inboxes.get(recipient, []))
        return sum(len(inboxes) for inboxes in self._inboxes.values())

    def open(self, recipient: str) -> Inbox:
        """Register a new inbox for ``recipient``.

        Raises:
            NotificationLimitError: the recipient or the whole hub is at capacity.
        """
        if self.open_count(recipient) >= self._max_per_recipient:
            raise NotificationLimitError(
                detail=f"{recipient} already has {self._max_per_recipient} open streams"
            )
        if self.open_count() >= self._max_inboxes:
            raise NotificationLimitError(
                detail=f"Hub is at its limit of {self._max_inboxes} open streams"
            )
        inbox = Inbox(self, recipient, self._inbox_size)
        self._inboxes[recipient].append(inbox)
        return inbox

    def release(self, inbox: Inbox) -> None:
        inboxes = self._inboxes.get(inbox.recipient)
        if not inboxes or inbox not in inboxes:
            return
        inboxes.remove(inbox)
        if not inboxes:
            del self._inboxes[inbox.recipient]

    def send(self, recipient: str, toast: dict) -> int:
        """Deliver a toast to every open inbox of ``recipient``.

        Returns the number of inboxes reached (0 if the submitter has no
        stream open; the toast is then discarded).
        """
        inboxes = list(self._inboxes.get(recipient, []))
        for inbox in inboxes:
            inbox.deliver(toast)
        return len(inboxes)


# Module-level singleton used by the notification service and router
toast_hub = ToastHub()
