"""
Flipbook - Template Merger
Overlays a shared document template onto each page and writes live
page numbers into the footer.

The footer format is captured once, on the first document merge: the
merged footer text if there is one, otherwise the default "Page {0}/{1}".
From then on every rendered document gets its footer text rebuilt from
that frozen format, so static footers on later pages never leak through.
"""

from dataclasses import replace
from typing import Optional

import config
from pagination.pages import Document, Footer, Page

# Template fields copied onto pages whenever the template sets them
TEMPLATE_FIELDS = (
    "author",
    "color",
    "description",
    "fields",
    "footer",
    "image",
    "thumbnail",
    "timestamp",
    "title",
    "url",
)

# A Document used as the shared template
DocumentTemplate = Document


def format_page_text(text: str, index: int, count: int) -> str:
    """
    Substitute page placeholders.

    Args:
        text: Text with optional {0} (page number) and {1} (page count)
        index: 0-based page index
        count: Total number of pages

    Returns:
        Text with every placeholder replaced
    """
    return text.replace("{0}", str(index + 1)).replace("{1}", str(count))


class TemplateMerger:
    """
    Renders pages for one paginator session.

    Owns the frozen footer format, so a new merger is needed for every
    session.
    """

    def __init__(
        self,
        template: Optional[DocumentTemplate] = None,
        default_format: str = config.DEFAULT_FOOTER_FORMAT,
    ):
        self.template = template
        self.default_format = default_format
        self._footer_format: Optional[str] = None

    @property
    def footer_format(self) -> Optional[str]:
        """The captured footer format, or None before the first document merge."""
        return self._footer_format

    def merge(self, page: Page, index: int, count: int) -> Page:
        """
        Produce the content to display for a page.

        Args:
            page: The stored page (never modified)
            index: 0-based index of the page
            count: Total number of pages

        Returns:
            Formatted text for text pages, a new Document for document pages
        """
        if isinstance(page, str):
            return format_page_text(page, index, count)
        if isinstance(page, Document):
            return self._merge_document(page, index, count)
        raise TypeError(f"Cannot render page of type {type(page).__name__}")

    def _merge_document(self, page: Document, index: int, count: int) -> Document:
        document = self._apply_template(page)
        footer = document.footer

        if self._footer_format is None:
            if footer is not None and footer.text:
                self._footer_format = footer.text
            else:
                self._footer_format = self.default_format

        # Footer without text keeps its icon; the text is always live
        footer = footer or Footer()
        text = format_page_text(self._footer_format, index, count)
        return replace(document, footer=replace(footer, text=text))

    def _apply_template(self, page: Document) -> Document:
        if self.template is None:
            return page

        overrides = {}
        for name in TEMPLATE_FIELDS:
            value = getattr(self.template, name)
            if value:
                overrides[name] = value

        if not overrides:
            return page
        return replace(page, **overrides)
