"""
Flipbook - Page Store
Plain-text and structured document pages, kept in display order.

A page is either a plain string or a Document. Documents mirror the
structured "rich message" shape most chat platforms offer (title,
description, author, fields, footer, images). Pages are never mutated
after they are stored; rendering works on copies.
"""

from dataclasses import dataclass, fields as dataclass_fields
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from pagination.errors import ConfigurationError, ConfigurationErrorKind


@dataclass(frozen=True)
class Footer:
    """Footer line of a document. text may hold {0}/{1} placeholders."""
    text: Optional[str] = None
    icon_url: Optional[str] = None


@dataclass(frozen=True)
class Media:
    """An image or thumbnail reference."""
    url: Optional[str] = None


@dataclass(frozen=True)
class Author:
    """Author line of a document."""
    name: Optional[str] = None
    icon_url: Optional[str] = None
    url: Optional[str] = None


@dataclass(frozen=True)
class Field:
    """A name/value pair shown in the document body."""
    name: Optional[str] = None
    value: Optional[str] = None
    inline: bool = False


@dataclass(frozen=True)
class Document:
    """
    A structured page.

    Attributes:
        title: Heading text
        description: Main body text
        url: Link attached to the title
        timestamp: Unix timestamp or ISO string shown with the footer
        color: Accent color as 0xRRGGBB
        footer: Footer line (receives the page number)
        image: Large image
        thumbnail: Small image
        author: Author line
        fields: Name/value pairs
    """
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    timestamp: Optional[Union[int, float, str]] = None
    color: Optional[int] = None
    footer: Optional[Footer] = None
    image: Optional[Media] = None
    thumbnail: Optional[Media] = None
    author: Optional[Author] = None
    fields: tuple = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Document":
        """
        Build a Document from a plain mapping.

        Nested parts may be given as mappings too, e.g.
        {"footer": {"text": "...", "icon_url": "..."}}. Unknown keys
        are ignored.
        """
        def nested(kind, value):
            if value is None or isinstance(value, kind):
                return value
            if not isinstance(value, Mapping):
                raise ConfigurationError(
                    ConfigurationErrorKind.INVALID_PAGE,
                    f"{kind.__name__} must be a mapping, got {type(value).__name__}",
                )
            known = {item.name for item in dataclass_fields(kind)}
            return kind(**{key: part for key, part in value.items() if key in known})

        raw_fields = data.get("fields") or ()
        if not isinstance(raw_fields, (list, tuple)):
            raise ConfigurationError(
                ConfigurationErrorKind.INVALID_PAGE,
                f"Document fields must be a list, got {type(raw_fields).__name__}",
            )

        return cls(
            title=data.get("title"),
            description=data.get("description"),
            url=data.get("url"),
            timestamp=data.get("timestamp"),
            color=data.get("color"),
            footer=nested(Footer, data.get("footer")),
            image=nested(Media, data.get("image")),
            thumbnail=nested(Media, data.get("thumbnail")),
            author=nested(Author, data.get("author")),
            fields=tuple(nested(Field, f) for f in raw_fields),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain mapping with unset parts left out."""
        result: Dict[str, Any] = {}
        for item in dataclass_fields(self):
            value = getattr(self, item.name)
            if value is None or value == ():
                continue
            if item.name == "fields":
                result["fields"] = [_part_to_dict(f) for f in value]
            elif isinstance(value, (Footer, Media, Author)):
                result[item.name] = _part_to_dict(value)
            else:
                result[item.name] = value
        return result


def _part_to_dict(part) -> Dict[str, Any]:
    return {
        item.name: getattr(part, item.name)
        for item in dataclass_fields(part)
        if getattr(part, item.name) is not None
    }


Page = Union[str, Document]


def coerce_page(page: Any) -> Page:
    """
    Validate a page value, converting mappings to Documents.

    Raises:
        ConfigurationError: If the value is neither text nor a document
    """
    if isinstance(page, (str, Document)):
        return page
    if isinstance(page, dict):
        return Document.from_dict(page)
    raise ConfigurationError(
        ConfigurationErrorKind.INVALID_PAGE,
        f"pages must be strings or documents, got {type(page).__name__}",
    )


class PageStore:
    """Ordered sequence of pages owned by one paginator."""

    def __init__(self, pages: Optional[Iterable[Any]] = None):
        self._pages: List[Page] = [coerce_page(p) for p in pages or ()]

    def append(self, page: Any) -> None:
        """Add a page at the end."""
        self._pages.append(coerce_page(page))

    def replace_all(self, pages: Iterable[Any]) -> None:
        """Replace every page with a new sequence."""
        self._pages = [coerce_page(p) for p in pages]

    @property
    def page_count(self) -> int:
        return len(self._pages)

    @property
    def last_index(self) -> int:
        return len(self._pages) - 1

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, index: int) -> Page:
        return self._pages[index]

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)
