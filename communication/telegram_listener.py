"""
Flipbook - Telegram Listener
Background polling for inbound Telegram updates.

This module polls the Telegram Bot API and routes what arrives:
- Inline button presses go to the control stream open for that message
- Text messages go to a pending reply waiter in that chat (jump prompts)
- Any other text message goes to the command callback
"""

import asyncio
import inspect
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from telegram import Bot
from telegram.error import TelegramError

from core.logger import log_info, log_error, log_warning
from pagination.transport import ControlEvent, ControlEventStream, TextReply


@dataclass(frozen=True)
class TelegramMessageRef:
    """Handle of a message sent by the bot."""
    chat_id: str
    message_id: int


@dataclass
class InboundMessage:
    """
    Represents an inbound text message from Telegram.

    Attributes:
        text: The message text
        chat_id: The chat this message came from
        message_id: Telegram's message ID
        timestamp: When the message was sent
        user_id: Telegram user id of the sender
        from_user: Username or first name of sender
    """
    text: str
    chat_id: str
    message_id: int
    timestamp: datetime
    user_id: Optional[int]
    from_user: str

    @property
    def ref(self) -> TelegramMessageRef:
        return TelegramMessageRef(self.chat_id, self.message_id)


MessageCallback = Callable[[InboundMessage], Union[None, Awaitable[None]]]
ReplyWaiter = Tuple[str, Callable[[TextReply], bool], "asyncio.Future[TextReply]"]


class TelegramListener:
    """
    Polls getUpdates and fans updates out to paginators and commands.

    Runs as a task on the caller's event loop; start() schedules it and
    stop() cancels it and closes the bot session.
    """

    def __init__(self, bot_token: str, poll_interval: float = 1.0):
        """
        Initialize the Telegram listener.

        Args:
            bot_token: Telegram Bot API token
            poll_interval: Seconds between polls
        """
        self.bot_token = bot_token
        self.poll_interval = poll_interval

        self._bot: Optional[Bot] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._callback: Optional[MessageCallback] = None
        self._last_update_id: int = 0
        self._streams: Dict[TelegramMessageRef, List[ControlEventStream]] = {}
        self._reply_waiters: List[ReplyWaiter] = []
        self._callback_tasks: set = set()

    def get_bot(self) -> Bot:
        """Get or create the Bot instance."""
        if self._bot is None:
            self._bot = Bot(token=self.bot_token)
        return self._bot

    def set_callback(self, callback: MessageCallback) -> None:
        """
        Set the callback for text messages nobody is waiting for.

        Args:
            callback: Function or coroutine function taking an InboundMessage
        """
        self._callback = callback

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def register_stream(self, ref: TelegramMessageRef, stream: ControlEventStream) -> None:
        """Deliver button presses on a message to a control stream."""
        self._streams.setdefault(ref, []).append(stream)

    def unregister_stream(self, ref: TelegramMessageRef, stream: ControlEventStream) -> None:
        """
        Stop delivering presses to a stream.

        Presses it queued but never consumed are answered so the
        client drops its loading indicator.
        """
        streams = self._streams.get(ref)
        if streams and stream in streams:
            streams.remove(stream)
        if streams is not None and not streams:
            del self._streams[ref]

        for event in stream.drain():
            if event.raw is not None:
                task = asyncio.ensure_future(self._answer_press(event.raw, "unhandled"))
                self._callback_tasks.add(task)
                task.add_done_callback(self._callback_tasks.discard)

    async def wait_for_reply(
        self,
        chat_id: Any,
        predicate: Callable[[TextReply], bool],
        timeout: float,
    ) -> Optional[TextReply]:
        """
        Wait for the next text message in a chat that matches a predicate.

        Args:
            chat_id: Chat to watch
            predicate: Filter applied to each candidate reply
            timeout: Seconds to wait

        Returns:
            The reply, or None on timeout
        """
        future: "asyncio.Future[TextReply]" = asyncio.get_running_loop().create_future()
        waiter: ReplyWaiter = (str(chat_id), predicate, future)
        self._reply_waiters.append(waiter)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            return None
        finally:
            if waiter in self._reply_waiters:
                self._reply_waiters.remove(waiter)

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    async def _poll_once(self) -> int:
        """
        Poll for new updates once and route them.

        Returns:
            Number of updates processed
        """
        bot = self.get_bot()
        updates = await bot.get_updates(
            offset=self._last_update_id + 1,
            timeout=1,
            allowed_updates=["message", "callback_query"],
        )

        for update in updates:
            # Update the offset to acknowledge this update
            self._last_update_id = update.update_id

            if update.callback_query is not None:
                await self._route_callback_query(update.callback_query)
            elif update.message is not None and update.message.text:
                self._route_message(update.message)

        return len(updates)

    async def _route_callback_query(self, query) -> None:
        message = query.message
        if message is None or not query.data:
            return

        ref = TelegramMessageRef(str(message.chat.id), message.message_id)
        event = ControlEvent(
            symbol_id=None,
            symbol_name=query.data,
            actor_id=query.from_user.id if query.from_user else None,
            removable=True,
            raw=query,
        )

        accepted = False
        for stream in list(self._streams.get(ref, ())):
            if stream.push(event):
                accepted = True

        if not accepted:
            # Nobody will acknowledge it; stop the client's loading spinner
            await self._answer_press(query, "ignored")

    async def _answer_press(self, query, kind: str) -> None:
        try:
            await self.get_bot().answer_callback_query(callback_query_id=query.id)
        except TelegramError as e:
            log_warning(f"Could not answer {kind} button press: {e}")

    def _route_message(self, msg) -> None:
        chat_id = str(msg.chat.id)
        user = msg.from_user

        reply = TextReply(
            text=msg.text,
            actor_id=user.id if user else None,
            handle=TelegramMessageRef(chat_id, msg.message_id),
        )
        for waiter_chat, predicate, future in list(self._reply_waiters):
            if waiter_chat == chat_id and not future.done() and predicate(reply):
                future.set_result(reply)
                return

        if self._callback is None:
            return

        inbound = InboundMessage(
            text=msg.text,
            chat_id=chat_id,
            message_id=msg.message_id,
            timestamp=msg.date or datetime.now(),
            user_id=user.id if user else None,
            from_user=(user.username or user.first_name or "") if user else "",
        )
        log_info(f"Received Telegram message from {inbound.from_user}: {inbound.text[:50]}")

        try:
            result = self._callback(inbound)
        except Exception as e:
            log_error(f"Error in message callback: {e}")
            return

        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._callback_tasks.add(task)
            task.add_done_callback(self._on_callback_done)

    def _on_callback_done(self, task: "asyncio.Future[Any]") -> None:
        self._callback_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            log_error(f"Error in message callback: {task.exception()}")

    async def run(self) -> None:
        """Poll until stopped."""
        await self.get_bot().initialize()
        log_info("Telegram listener started")

        try:
            while self._running:
                try:
                    await self._poll_once()
                except TelegramError as e:
                    log_error(f"Telegram polling error: {e}")

                # Wait before next poll
                await asyncio.sleep(self.poll_interval)
        finally:
            for streams in list(self._streams.values()):
                for stream in list(streams):
                    stream.close()
            log_info("Telegram listener stopped")

    def start(self) -> asyncio.Task:
        """Start polling as a task on the running event loop."""
        if self._task is not None and not self._task.done():
            return self._task

        self._running = True
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop polling and close the bot's HTTP session."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.wait({self._task})
            self._task = None

        if self._bot is not None:
            try:
                await self._bot.shutdown()
            except Exception as e:
                log_warning(f"Error shutting down Telegram bot: {e}")

    def is_running(self) -> bool:
        """Check if the listener is polling."""
        return self._running and self._task is not None and not self._task.done()

    def get_stats(self) -> dict:
        """
        Get listener statistics.

        Returns:
            Dict with current status
        """
        return {
            "running": self._running,
            "poll_interval": self.poll_interval,
            "last_update_id": self._last_update_id,
            "open_streams": sum(len(s) for s in self._streams.values()),
            "reply_waiters": len(self._reply_waiters),
            "has_callback": self._callback is not None,
        }
