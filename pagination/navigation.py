"""
Flipbook - Navigation State Machine
Computes page-index transitions for each control action.

Every transition returns True only when the index actually changed.
Callers rely on that to skip re-rendering on no-op presses (for example
"next" on the last page of a non-circular paginator).
"""

from typing import Any, Optional

# Longer replies cannot name a real page and would exceed int() limits
MAX_PAGE_DIGITS = 18


def parse_page_number(text: Any) -> Optional[int]:
    """
    Parse a viewer's reply into a 1-based page number.

    Args:
        text: Raw reply (usually a string)

    Returns:
        The integer, or None if the reply is not a whole number of at
        most MAX_PAGE_DIGITS significant digits
    """
    if isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text
    if not isinstance(text, str):
        return None

    candidate = text.strip()
    if candidate[:1] in ("+", "-"):
        digits = candidate[1:]
    else:
        digits = candidate
    if not digits.isdecimal():
        return None
    if len(digits.lstrip("0")) > MAX_PAGE_DIGITS:
        return None
    return int(candidate)


class NavigationState:
    """
    Current page index within [0, last_index].

    Attributes:
        page_count: Number of pages
        circular: Whether back/next wrap around at the ends
        current_index: 0-based index of the displayed page
    """

    def __init__(self, page_count: int, circular: bool = True, current_index: int = 0):
        if page_count < 1:
            raise ValueError("NavigationState needs at least one page")
        if not 0 <= current_index < page_count:
            raise ValueError(f"current_index {current_index} out of range for {page_count} pages")

        self.page_count = page_count
        self.circular = circular
        self.current_index = current_index

    @property
    def last_index(self) -> int:
        return self.page_count - 1

    @property
    def current_page_number(self) -> int:
        """1-based page number, as shown to viewers."""
        return self.current_index + 1

    def _move(self, index: int) -> bool:
        if index == self.current_index:
            return False
        self.current_index = index
        return True

    def front(self) -> bool:
        """Go to the first page."""
        return self._move(0)

    def rear(self) -> bool:
        """Go to the last page."""
        return self._move(self.last_index)

    def back(self) -> bool:
        """Go to the previous page, wrapping to the last one when circular."""
        if self.current_index == 0:
            return self._move(self.last_index) if self.circular else False
        return self._move(self.current_index - 1)

    def next(self) -> bool:
        """Go to the next page, wrapping to the first one when circular."""
        if self.current_index == self.last_index:
            return self._move(0) if self.circular else False
        return self._move(self.current_index + 1)

    def jump(self, page_number: int) -> bool:
        """
        Go straight to a 1-based page number.

        Circularity does not apply: numbers outside 1..page_count are ignored.
        """
        if not 1 <= page_number <= self.page_count:
            return False
        return self._move(page_number - 1)
