"""
Flipbook - Paginator Error Types
Configuration failures, transport failures, and terminal end reasons
"""

from enum import Enum


class EndReason(Enum):
    """Why a paginator session ended."""
    DESTROYED = "destroyed"            # destroy() called by the owner
    TIMED_OUT = "timed out"            # No control before the session timeout
    ONLY_ONE_PAGE = "only one page"    # Single page, no controls attached
    STOPPED = "explicit stop"          # Viewer pressed the stop control
    TRASHED = "trashed"                # Viewer pressed the trash control
    TRANSPORT_ERROR = "transport error"
    FAILED = "failed"                  # Unexpected error while handling a control

    def __str__(self) -> str:
        return self.value


class ConfigurationErrorKind(Enum):
    """Categories of invalid paginator configuration."""
    EMPTY_PAGES = "empty_pages"
    INVALID_PAGE = "invalid_page"
    MISSING_SYMBOL = "missing_symbol"
    MISSING_VIEWER = "missing_viewer"
    INVALID_OPTION = "invalid_option"
    ALREADY_ENDED = "already_ended"


class PaginatorError(Exception):
    """Base class for paginator errors."""


class ConfigurationError(PaginatorError):
    """
    A required paginator field is missing or invalid.

    Raised (or emitted on the "error" channel by Paginator.start) before
    any transport side effect happens.

    Attributes:
        kind: Category of the problem
        detail: Human-readable description
    """

    def __init__(self, kind: ConfigurationErrorKind, detail: str):
        super().__init__(f"{kind.value}: {detail}")
        self.kind = kind
        self.detail = detail


class TransportError(PaginatorError):
    """The chat transport failed to carry out a request."""
