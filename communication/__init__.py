"""
Flipbook - Communication Module
Telegram transport for paginators.
"""

from communication.telegram_listener import (
    InboundMessage,
    TelegramListener,
    TelegramMessageRef,
)
from communication.telegram_transport import TelegramTransport
from communication.telegram_format import render_document_html, render_page


__all__ = [
    # Listener
    'InboundMessage',
    'TelegramListener',
    'TelegramMessageRef',
    # Transport
    'TelegramTransport',
    # Formatting
    'render_document_html',
    'render_page',
]
