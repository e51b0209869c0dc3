"""
Tests for the Telegram transport, listener routing, and HTML formatting.

The Bot is replaced with an AsyncMock; no network access is needed.
"""

import asyncio
import unittest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from telegram.error import BadRequest, TelegramError

from communication.telegram_format import render_document_html, render_page
from communication.telegram_listener import InboundMessage, TelegramListener, TelegramMessageRef
from communication.telegram_transport import TelegramTransport
from pagination import EndReason, Paginator
from pagination.errors import TransportError
from pagination.pages import Author, Document, Field, Footer
from pagination.transport import ControlEvent, ControlEventStream

REF = TelegramMessageRef("42", 7)


def sent_message(chat_id=42, message_id=7):
    return SimpleNamespace(chat=SimpleNamespace(id=chat_id), message_id=message_id)


def make_listener() -> TelegramListener:
    listener = TelegramListener(bot_token="123:test")
    listener._bot = AsyncMock()
    listener._bot.send_message.return_value = sent_message()
    return listener


def button_texts(markup):
    return [button.text for row in markup.inline_keyboard for button in row]


class TestTelegramFormat(unittest.TestCase):

    def test_text_page_escaped_for_html(self):
        self.assertEqual(render_page("a <b> & c"), "a &lt;b&gt; &amp; c")

    def test_text_page_raw_without_parse_mode(self):
        self.assertEqual(render_page("a <b>", parse_mode=None), "a <b>")

    def test_document_rendering(self):
        document = Document(
            title="Title",
            url="https://example.com",
            author=Author(name="Someone"),
            description="Body <text>",
            fields=(Field(name="Name", value="Value"),),
            footer=Footer(text="Page 1/3", icon_url="https://example.com/i.png"),
        )
        self.assertEqual(
            render_document_html(document),
            "<i>Someone</i>\n\n"
            '<b><a href="https://example.com">Title</a></b>\n\n'
            "Body &lt;text&gt;\n\n"
            "<b>Name</b>\nValue\n\n"
            "<i>Page 1/3</i>",
        )

    def test_document_without_footer(self):
        self.assertEqual(render_document_html(Document(title="T")), "<b>T</b>")


class TestTelegramTransport(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.listener = make_listener()
        self.bot = self.listener._bot
        self.transport = TelegramTransport(self.listener)

    async def test_render_initial(self):
        ref = await self.transport.render_initial(42, "Page <1>")

        self.assertEqual(ref, REF)
        self.bot.send_message.assert_awaited_once_with(
            chat_id=42, text="Page &lt;1&gt;", parse_mode="HTML"
        )

    async def test_documents_always_sent_as_html(self):
        transport = TelegramTransport(self.listener, parse_mode=None)
        await transport.render_initial(42, Document(title="T"))
        self.assertEqual(self.bot.send_message.call_args.kwargs["parse_mode"], "HTML")

    async def test_attach_control_builds_keyboard(self):
        await self.transport.attach_control(REF, "◀")
        await self.transport.attach_control(REF, "▶")
        await self.transport.attach_control(REF, "▶")

        self.assertEqual(self.bot.edit_message_reply_markup.await_count, 2)
        markup = self.bot.edit_message_reply_markup.call_args.kwargs["reply_markup"]
        self.assertEqual(button_texts(markup), ["◀", "▶"])

    async def test_render_update_keeps_keyboard(self):
        await self.transport.attach_control(REF, "◀")
        await self.transport.render_update(REF, "Page 2")

        kwargs = self.bot.edit_message_text.call_args.kwargs
        self.assertEqual(kwargs["text"], "Page 2")
        self.assertEqual(kwargs["message_id"], 7)
        self.assertEqual(button_texts(kwargs["reply_markup"]), ["◀"])

    async def test_not_modified_is_not_an_error(self):
        self.bot.edit_message_text.side_effect = BadRequest("Message is not modified")
        await self.transport.render_update(REF, "same")

    async def test_telegram_errors_become_transport_errors(self):
        self.bot.edit_message_text.side_effect = BadRequest("Message to edit not found")
        with self.assertRaises(TransportError):
            await self.transport.render_update(REF, "Page 2")

        self.bot.delete_message.side_effect = TelegramError("Forbidden")
        with self.assertRaises(TransportError):
            await self.transport.delete_message(REF)

    async def test_delete_message(self):
        await self.transport.attach_control(REF, "◀")
        await self.transport.delete_message(REF)

        self.bot.delete_message.assert_awaited_once_with(chat_id="42", message_id=7)
        self.assertNotIn(REF, self.transport._keyboards)

    async def test_remove_control_answers_callback(self):
        event = ControlEvent(None, "▶", 5, removable=True, raw=SimpleNamespace(id="q1"))
        await self.transport.remove_control_from_user(REF, event)
        self.bot.answer_callback_query.assert_awaited_once_with(callback_query_id="q1")

    async def test_subscription_registered_until_closed(self):
        stream = await self.transport.subscribe_control_events(REF, lambda e: True, 10)
        self.assertEqual(self.listener.get_stats()["open_streams"], 1)

        stream.close()
        self.assertEqual(self.listener.get_stats()["open_streams"], 0)

    async def test_keyboard_released_after_timed_out_session(self):
        paginator = Paginator(
            pages=["A", "B"], viewer_id=5, timeout=0.05, pacing_delay=0, delete_on_timeout=False
        )
        await paginator.start(self.transport, 42)
        self.assertIn(REF, self.transport._keyboards)

        reason = await asyncio.wait_for(paginator.wait(), timeout=2)

        self.assertEqual(reason, EndReason.TIMED_OUT)
        self.assertEqual(self.transport._keyboards, {})
        self.assertEqual(self.listener.get_stats()["open_streams"], 0)
        self.bot.delete_message.assert_not_awaited()


class TestTelegramListener(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.listener = make_listener()
        self.bot = self.listener._bot

    def callback_query(self, data="▶", user_id=5):
        return SimpleNamespace(
            id="q1",
            data=data,
            message=sent_message(),
            from_user=SimpleNamespace(id=user_id),
        )

    def text_message(self, text, user_id=5):
        return SimpleNamespace(
            chat=SimpleNamespace(id=42),
            message_id=9,
            text=text,
            date=None,
            from_user=SimpleNamespace(id=user_id, username="viewer", first_name="View"),
        )

    async def test_button_press_routed_to_stream(self):
        received = []
        stream = ControlEventStream(predicate=lambda e: received.append(e) or True)
        self.listener.register_stream(REF, stream)

        await self.listener._route_callback_query(self.callback_query())

        self.assertEqual(len(received), 1)
        event = received[0]
        self.assertEqual(event.symbol, "▶")
        self.assertEqual(event.actor_id, 5)
        self.assertTrue(event.removable)
        self.bot.answer_callback_query.assert_not_awaited()

    async def test_unclaimed_press_answered(self):
        await self.listener._route_callback_query(self.callback_query())
        self.bot.answer_callback_query.assert_awaited_once_with(callback_query_id="q1")

    async def test_queued_presses_answered_when_stream_closes(self):
        stream = ControlEventStream(on_close=lambda s: self.listener.unregister_stream(REF, s))
        self.listener.register_stream(REF, stream)
        await self.listener._route_callback_query(self.callback_query())
        self.bot.answer_callback_query.assert_not_awaited()

        stream.close()
        for _ in range(5):
            await asyncio.sleep(0)

        self.bot.answer_callback_query.assert_awaited_once_with(callback_query_id="q1")
        self.assertEqual(self.listener.get_stats()["open_streams"], 0)

    async def test_reply_delivered_to_waiter(self):
        waiter = asyncio.create_task(
            self.listener.wait_for_reply(42, lambda reply: reply.actor_id == 5, 1)
        )
        await asyncio.sleep(0)

        callback = MagicMock()
        self.listener.set_callback(callback)
        self.listener._route_message(self.text_message("3"))

        reply = await waiter
        self.assertEqual(reply.text, "3")
        self.assertEqual(reply.handle, TelegramMessageRef("42", 9))
        callback.assert_not_called()

    async def test_reply_wait_times_out(self):
        self.assertIsNone(await self.listener.wait_for_reply(42, lambda reply: True, 0.01))
        self.assertEqual(self.listener.get_stats()["reply_waiters"], 0)

    async def test_other_messages_go_to_callback(self):
        callback = MagicMock(return_value=None)
        self.listener.set_callback(callback)
        self.listener._route_message(self.text_message("/pages"))

        inbound = callback.call_args[0][0]
        self.assertIsInstance(inbound, InboundMessage)
        self.assertEqual(inbound.text, "/pages")
        self.assertEqual(inbound.chat_id, "42")
        self.assertEqual(inbound.user_id, 5)
        self.assertEqual(inbound.from_user, "viewer")

    async def test_async_callback_scheduled(self):
        callback = AsyncMock()
        self.listener.set_callback(callback)
        self.listener._route_message(self.text_message("/embed"))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        callback.assert_awaited_once()

    async def test_poll_once_routes_updates(self):
        callback = MagicMock(return_value=None)
        self.listener.set_callback(callback)
        self.bot.get_updates.return_value = [
            SimpleNamespace(update_id=10, callback_query=None, message=self.text_message("/pages")),
            SimpleNamespace(update_id=11, callback_query=self.callback_query(), message=None),
        ]

        self.assertEqual(await self.listener._poll_once(), 2)
        self.assertEqual(self.listener.get_stats()["last_update_id"], 11)
        callback.assert_called_once()
        self.bot.answer_callback_query.assert_awaited_once()


if __name__ == '__main__':
    unittest.main()
