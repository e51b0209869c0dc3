"""
Flipbook - Telegram Formatting
Renders pages as Telegram HTML message text.

Telegram has no structured "embed" messages, so documents are flattened
into HTML: bold (linked) title, author line, description, fields, and the
footer with its page number. Color and thumbnails have no equivalent and
are dropped.
"""

import html
from datetime import datetime
from typing import List, Optional

from pagination.pages import Document, Page


def _link(text: str, url: Optional[str]) -> str:
    escaped = html.escape(text)
    if url:
        return f'<a href="{html.escape(url, quote=True)}">{escaped}</a>'
    return escaped


def _format_timestamp(value) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value).strftime("%Y-%m-%d %H:%M")
    return str(value)


def render_document_html(document: Document) -> str:
    """
    Flatten a document into Telegram HTML.

    Args:
        document: A merged document (footer already carries the page number)

    Returns:
        HTML text suitable for parse_mode="HTML"
    """
    lines: List[str] = []

    if document.author and document.author.name:
        lines.append(f"<i>{_link(document.author.name, document.author.url)}</i>")

    if document.title:
        lines.append(f"<b>{_link(document.title, document.url)}</b>")

    if document.description:
        lines.append(html.escape(document.description))

    for field in document.fields:
        name = html.escape(field.name or "")
        value = html.escape(field.value or "")
        lines.append(f"<b>{name}</b>\n{value}" if name else value)

    if document.image and document.image.url:
        lines.append(_link("🖼 Image", document.image.url))

    footer_parts = []
    if document.footer and document.footer.text:
        footer_parts.append(html.escape(document.footer.text))
    if document.timestamp:
        footer_parts.append(html.escape(_format_timestamp(document.timestamp)))
    if footer_parts:
        lines.append(f"<i>{' • '.join(footer_parts)}</i>")

    return "\n\n".join(lines)


def render_page(content: Page, parse_mode: Optional[str] = "HTML") -> str:
    """
    Message text for a merged page.

    Plain-text pages are escaped when HTML parsing is on so stray angle
    brackets in page content cannot break the message.
    """
    if isinstance(content, Document):
        return render_document_html(content)
    if parse_mode == "HTML":
        return html.escape(content)
    return content
