"""
In-memory transport for paginator tests.

Records every call so tests can assert on renders, attached controls,
and deletions, and lets tests press controls and script jump replies.
"""

import asyncio
from typing import Any, List, Optional

from pagination.errors import TransportError
from pagination.transport import (
    ControlEvent,
    ControlEventStream,
    PaginatorTransport,
    TextReply,
)

MAIN_MESSAGE = "message-1"


class RecordingTransport(PaginatorTransport):
    """Transport double that keeps everything in lists."""

    def __init__(self):
        self.sent: List[Any] = []          # render_initial contents
        self.updates: List[Any] = []       # render_update contents
        self.attached: List[Any] = []      # attach_control symbols
        self.texts: List[str] = []         # send_message texts
        self.deleted: List[Any] = []       # delete_message handles
        self.removed: List[ControlEvent] = []
        self.stream: Optional[ControlEventStream] = None
        self.subscribe_timeout: Optional[float] = None
        self.replies: List[Optional[TextReply]] = []
        self.reply_waits = 0

        self.fail_updates = False
        self.fail_removal = False
        self._counter = 0

    @property
    def displayed(self) -> Any:
        """Content currently shown in the paginated message."""
        if self.updates:
            return self.updates[-1]
        return self.sent[-1] if self.sent else None

    async def render_initial(self, channel, content):
        self.sent.append(content)
        return MAIN_MESSAGE

    async def render_update(self, handle, content):
        if self.fail_updates:
            raise TransportError("edit rejected")
        self.updates.append(content)

    async def attach_control(self, handle, symbol):
        if symbol not in self.attached:
            self.attached.append(symbol)

    async def subscribe_control_events(self, handle, predicate, timeout):
        self.subscribe_timeout = timeout
        self.stream = ControlEventStream(predicate=predicate, timeout=timeout)
        return self.stream

    async def await_reply(self, channel, predicate, timeout):
        self.reply_waits += 1
        while self.replies:
            reply = self.replies.pop(0)
            if reply is not None and predicate(reply):
                return reply
        await asyncio.sleep(timeout)
        return None

    async def send_message(self, channel, text):
        self._counter += 1
        self.texts.append(text)
        return f"aux-{self._counter}"

    async def delete_message(self, handle):
        self.deleted.append(handle)

    async def remove_control_from_user(self, handle, event):
        if self.fail_removal:
            raise TransportError("missing permission")
        self.removed.append(event)

    def press(self, symbol, actor="viewer", symbol_id=None, removable=False) -> bool:
        """Simulate a control press. Returns True if the stream queued it."""
        event = ControlEvent(
            symbol_id=symbol_id,
            symbol_name=symbol,
            actor_id=actor,
            removable=removable,
        )
        return self.stream.push(event)

    def queue_reply(self, text: str, actor="viewer", handle="reply-1") -> None:
        self.replies.append(TextReply(text=text, actor_id=actor, handle=handle))


async def settle(rounds: int = 50) -> None:
    """Let queued events run through the paginator."""
    for _ in range(rounds):
        await asyncio.sleep(0)
