"""
Flipbook - Transport Interface
The narrow set of chat operations a paginator needs.

Transports send and edit messages, attach control symbols, and deliver
control events and text replies. The paginator never talks to a chat
platform directly; concrete transports live in the communication package.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Union

from pagination.pages import Page

# Opaque references owned by the transport
MessageHandle = Any
ChannelHandle = Any


@dataclass
class ControlEvent:
    """
    A viewer pressed a control.

    Attributes:
        symbol_id: Custom symbol id (takes precedence when present)
        symbol_name: Name-based symbol, e.g. an emoji
        actor_id: Identity of the viewer who pressed it
        removable: Whether the transport can clear the viewer's press
        raw: Platform object the event came from
    """
    symbol_id: Optional[Union[str, int]]
    symbol_name: Optional[str]
    actor_id: Any
    removable: bool = False
    raw: Any = field(default=None, repr=False)

    @property
    def symbol(self) -> Optional[Union[str, int]]:
        """The identifier used for matching."""
        if self.symbol_id is not None and self.symbol_id != "":
            return self.symbol_id
        return self.symbol_name


@dataclass
class TextReply:
    """
    A text message sent by a viewer.

    Attributes:
        text: Message text
        actor_id: Identity of the sender
        handle: Handle of the reply message (for deletion)
    """
    text: str
    actor_id: Any
    handle: MessageHandle = None


class _Closed:
    """Queue sentinel marking the end of a stream."""


_CLOSED = _Closed()


class ControlEventStream:
    """
    Control events for one message, in arrival order.

    Iterating suspends until the next event. The stream ends when its
    deadline passes or when close() is called; closing is idempotent.
    Events rejected by the predicate are never queued.
    """

    def __init__(
        self,
        predicate: Optional[Callable[[ControlEvent], bool]] = None,
        timeout: Optional[float] = None,
        on_close: Optional[Callable[["ControlEventStream"], None]] = None,
    ):
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue()
        self._predicate = predicate
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._on_close = on_close
        self._closed = False
        self.timed_out = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, event: ControlEvent) -> bool:
        """
        Offer an event to the stream.

        Returns:
            True if the event was queued
        """
        if self._closed:
            return False
        if self._predicate is not None and not self._predicate(event):
            return False
        self._queue.put_nowait(event)
        return True

    def close(self) -> None:
        """End the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        if self._on_close is not None:
            self._on_close(self)

    def drain(self) -> List[ControlEvent]:
        """
        Remove and return the events still waiting to be consumed.

        A closed stream keeps its end marker, so a pending iteration
        still finishes.
        """
        pending = []
        while not self._queue.empty():
            item = self._queue.get_nowait()
            if item is not _CLOSED:
                pending.append(item)
        if self._closed:
            self._queue.put_nowait(_CLOSED)
        return pending

    def __aiter__(self) -> "ControlEventStream":
        return self

    async def __anext__(self) -> ControlEvent:
        if self._closed:
            raise StopAsyncIteration

        remaining = None
        if self._deadline is not None:
            remaining = self._deadline - time.monotonic()
            if remaining <= 0:
                self._expire()
                raise StopAsyncIteration

        try:
            item = await asyncio.wait_for(self._queue.get(), timeout=remaining)
        except asyncio.TimeoutError:
            self._expire()
            raise StopAsyncIteration

        if item is _CLOSED or self._closed:
            raise StopAsyncIteration
        return item

    def _expire(self) -> None:
        self.timed_out = True
        self.close()


class PaginatorTransport(ABC):
    """
    Chat operations used by a paginator.

    Implementations raise pagination.errors.TransportError when the
    platform rejects a request. The paginator does not retry.
    """

    @abstractmethod
    async def render_initial(self, channel: ChannelHandle, content: Page) -> MessageHandle:
        """Send the first page and return a handle to the displayed message."""

    @abstractmethod
    async def render_update(self, handle: MessageHandle, content: Page) -> None:
        """Replace the displayed content in place."""

    @abstractmethod
    async def attach_control(self, handle: MessageHandle, symbol: Union[str, int]) -> None:
        """
        Attach a control symbol to the message.

        Attaching the same symbol twice has no further effect. The caller
        paces successive calls.
        """

    @abstractmethod
    async def subscribe_control_events(
        self,
        handle: MessageHandle,
        predicate: Callable[[ControlEvent], bool],
        timeout: float,
    ) -> ControlEventStream:
        """Open a stream of control events for the message."""

    @abstractmethod
    async def await_reply(
        self,
        channel: ChannelHandle,
        predicate: Callable[[TextReply], bool],
        timeout: float,
    ) -> Optional[TextReply]:
        """Wait for one matching text reply, or None on timeout."""

    @abstractmethod
    async def send_message(self, channel: ChannelHandle, text: str) -> MessageHandle:
        """Send a standalone text message (prompts, help)."""

    @abstractmethod
    async def delete_message(self, handle: MessageHandle) -> None:
        """Delete a message."""

    async def remove_control_from_user(self, handle: MessageHandle, event: ControlEvent) -> None:
        """
        Clear the viewer's press so the control can be used again.

        Only called for events whose removable flag is set. The default
        does nothing.
        """
