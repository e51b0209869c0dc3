"""
Flipbook - Telegram Transport
PaginatorTransport backed by the Telegram Bot API.

Control symbols become inline keyboard buttons under the paginated
message (button text and callback data are both the symbol). Telegram
drops the keyboard when a message is edited without one, so the
transport remembers each message's buttons and re-sends them with every
edit. Button presses are acknowledged with answerCallbackQuery.
"""

from typing import Any, Callable, Dict, List, Optional, Union

from telegram import InlineKeyboardButton, InlineKeyboardMarkup
from telegram.error import BadRequest, TelegramError

import config
from communication.telegram_format import render_page
from communication.telegram_listener import TelegramListener, TelegramMessageRef
from core.logger import log_error
from pagination.errors import TransportError
from pagination.pages import Document, Page
from pagination.transport import (
    ControlEvent,
    ControlEventStream,
    PaginatorTransport,
    TextReply,
)


class TelegramTransport(PaginatorTransport):
    """
    Telegram implementation of the paginator transport.

    Shares the listener's Bot instance; the listener must be running for
    button presses and replies to arrive.
    """

    def __init__(self, listener: TelegramListener, parse_mode: Optional[str] = config.TELEGRAM_PARSE_MODE):
        """
        Initialize the Telegram transport.

        Args:
            listener: Running listener that delivers updates
            parse_mode: Parse mode for plain-text pages ('HTML' or None)
        """
        self.listener = listener
        self.parse_mode = parse_mode
        self._keyboards: Dict[TelegramMessageRef, List[str]] = {}

    def _markup(self, ref: TelegramMessageRef) -> Optional[InlineKeyboardMarkup]:
        symbols = self._keyboards.get(ref)
        if not symbols:
            return None
        buttons = [InlineKeyboardButton(text=s, callback_data=s) for s in symbols]
        return InlineKeyboardMarkup([buttons])

    def _parse_mode_for(self, content: Page) -> Optional[str]:
        # Documents are always rendered as HTML
        return "HTML" if isinstance(content, Document) else self.parse_mode

    async def _call(self, action: str, request):
        """Await a Bot API request, converting Telegram errors."""
        try:
            return await request
        except BadRequest as e:
            if "message is not modified" in str(e).lower():
                return None
            log_error(f"Telegram API error during {action}: {e}")
            raise TransportError(f"Telegram {action} failed: {e}") from e
        except TelegramError as e:
            log_error(f"Telegram API error during {action}: {e}")
            raise TransportError(f"Telegram {action} failed: {e}") from e

    async def render_initial(self, channel: Any, content: Page) -> TelegramMessageRef:
        bot = self.listener.get_bot()
        message = await self._call("send", bot.send_message(
            chat_id=channel,
            text=render_page(content, self.parse_mode),
            parse_mode=self._parse_mode_for(content),
        ))
        return TelegramMessageRef(str(message.chat.id), message.message_id)

    async def render_update(self, handle: TelegramMessageRef, content: Page) -> None:
        bot = self.listener.get_bot()
        await self._call("edit", bot.edit_message_text(
            text=render_page(content, self.parse_mode),
            chat_id=handle.chat_id,
            message_id=handle.message_id,
            parse_mode=self._parse_mode_for(content),
            reply_markup=self._markup(handle),
        ))

    async def attach_control(self, handle: TelegramMessageRef, symbol: Union[str, int]) -> None:
        symbols = self._keyboards.setdefault(handle, [])
        key = str(symbol)
        if key in symbols:
            return
        symbols.append(key)

        bot = self.listener.get_bot()
        await self._call("attach control", bot.edit_message_reply_markup(
            chat_id=handle.chat_id,
            message_id=handle.message_id,
            reply_markup=self._markup(handle),
        ))

    async def subscribe_control_events(
        self,
        handle: TelegramMessageRef,
        predicate: Callable[[ControlEvent], bool],
        timeout: float,
    ) -> ControlEventStream:
        stream = ControlEventStream(
            predicate=predicate,
            timeout=timeout,
            on_close=lambda closed: self._release(handle, closed),
        )
        self.listener.register_stream(handle, stream)
        return stream

    def _release(self, handle: TelegramMessageRef, stream: ControlEventStream) -> None:
        """Forget a message's keyboard once its session stops listening."""
        self._keyboards.pop(handle, None)
        self.listener.unregister_stream(handle, stream)

    async def await_reply(
        self,
        channel: Any,
        predicate: Callable[[TextReply], bool],
        timeout: float,
    ) -> Optional[TextReply]:
        return await self.listener.wait_for_reply(channel, predicate, timeout)

    async def send_message(self, channel: Any, text: str) -> TelegramMessageRef:
        bot = self.listener.get_bot()
        message = await self._call("send", bot.send_message(chat_id=channel, text=text))
        return TelegramMessageRef(str(message.chat.id), message.message_id)

    async def delete_message(self, handle: TelegramMessageRef) -> None:
        self._keyboards.pop(handle, None)
        bot = self.listener.get_bot()
        await self._call("delete", bot.delete_message(
            chat_id=handle.chat_id,
            message_id=handle.message_id,
        ))

    async def remove_control_from_user(self, handle: TelegramMessageRef, event: ControlEvent) -> None:
        query = event.raw
        if query is None:
            return
        bot = self.listener.get_bot()
        await self._call("answer button", bot.answer_callback_query(callback_query_id=query.id))
