"""
Flipbook - Pagination Core
Pages, navigation, template merging, and the paginator session.

The core is transport neutral: it talks to chat platforms only through
PaginatorTransport. See communication/ for the Telegram transport.
"""

from pagination.errors import (
    EndReason,
    ConfigurationError,
    ConfigurationErrorKind,
    PaginatorError,
    TransportError,
)

from pagination.pages import (
    Author,
    Document,
    Field,
    Footer,
    Media,
    Page,
    PageStore,
)

from pagination.navigation import (
    NavigationState,
    parse_page_number,
)

from pagination.template import (
    DocumentTemplate,
    TemplateMerger,
    format_page_text,
)

from pagination.controls import (
    ControlAction,
    ControlMapping,
    ControlSymbolMap,
    InfoOptions,
    JumpOptions,
)

from pagination.transport import (
    ControlEvent,
    ControlEventStream,
    PaginatorTransport,
    TextReply,
)

from pagination.paginator import (
    Paginator,
    SessionState,
)


__all__ = [
    # Errors
    'EndReason',
    'ConfigurationError',
    'ConfigurationErrorKind',
    'PaginatorError',
    'TransportError',

    # Pages
    'Author',
    'Document',
    'Field',
    'Footer',
    'Media',
    'Page',
    'PageStore',

    # Navigation
    'NavigationState',
    'parse_page_number',

    # Template
    'DocumentTemplate',
    'TemplateMerger',
    'format_page_text',

    # Controls
    'ControlAction',
    'ControlMapping',
    'ControlSymbolMap',
    'InfoOptions',
    'JumpOptions',

    # Transport
    'ControlEvent',
    'ControlEventStream',
    'PaginatorTransport',
    'TextReply',

    # Session
    'Paginator',
    'SessionState',
]
