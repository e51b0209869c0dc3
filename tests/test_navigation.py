"""
Tests for page navigation transitions and jump reply parsing.
"""

import unittest

from pagination.navigation import NavigationState, parse_page_number


class TestCircularNavigation(unittest.TestCase):
    """Back/next wrap around when circular is on."""

    def test_next_moves_forward(self):
        nav = NavigationState(5)
        self.assertTrue(nav.next())
        self.assertEqual(nav.current_index, 1)
        self.assertEqual(nav.current_page_number, 2)

    def test_next_on_last_page_wraps_to_first(self):
        nav = NavigationState(5, current_index=4)
        self.assertTrue(nav.next())
        self.assertEqual(nav.current_index, 0)

    def test_back_on_first_page_wraps_to_last(self):
        nav = NavigationState(5)
        self.assertTrue(nav.back())
        self.assertEqual(nav.current_index, 4)

    def test_front_and_rear(self):
        nav = NavigationState(5, current_index=2)
        self.assertTrue(nav.rear())
        self.assertEqual(nav.current_index, 4)
        self.assertTrue(nav.front())
        self.assertEqual(nav.current_index, 0)

    def test_front_on_first_page_is_noop(self):
        """No change means no re-render."""
        nav = NavigationState(5)
        self.assertFalse(nav.front())
        self.assertEqual(nav.current_index, 0)

    def test_rear_on_last_page_is_noop(self):
        nav = NavigationState(3, current_index=2)
        self.assertFalse(nav.rear())

    def test_single_page_never_changes(self):
        nav = NavigationState(1)
        for move in (nav.next, nav.back, nav.front, nav.rear):
            self.assertFalse(move())
        self.assertEqual(nav.current_index, 0)


class TestLinearNavigation(unittest.TestCase):
    """With circular off, the ends are hard stops."""

    def test_next_on_last_page_is_noop(self):
        nav = NavigationState(3, circular=False, current_index=2)
        self.assertFalse(nav.next())
        self.assertEqual(nav.current_index, 2)

    def test_back_on_first_page_is_noop(self):
        nav = NavigationState(3, circular=False)
        self.assertFalse(nav.back())
        self.assertEqual(nav.current_index, 0)

    def test_middle_moves_still_work(self):
        nav = NavigationState(3, circular=False, current_index=1)
        self.assertTrue(nav.back())
        self.assertEqual(nav.current_index, 0)
        self.assertTrue(nav.next())
        self.assertEqual(nav.current_index, 1)


class TestJump(unittest.TestCase):
    """Jumps take 1-based page numbers and ignore anything out of range."""

    def test_jump_to_page(self):
        nav = NavigationState(5)
        self.assertTrue(nav.jump(3))
        self.assertEqual(nav.current_index, 2)

    def test_jump_to_current_page_is_noop(self):
        nav = NavigationState(5, current_index=2)
        self.assertFalse(nav.jump(3))

    def test_out_of_range_jumps_are_ignored(self):
        nav = NavigationState(5, current_index=1)
        for number in (0, -1, 6, 100):
            self.assertFalse(nav.jump(number), f"jump({number}) should be ignored")
        self.assertEqual(nav.current_index, 1)

    def test_jump_does_not_wrap_even_when_circular(self):
        nav = NavigationState(5, circular=True)
        self.assertFalse(nav.jump(6))
        self.assertEqual(nav.current_index, 0)

    def test_jump_bounds_are_inclusive(self):
        nav = NavigationState(5, current_index=2)
        self.assertTrue(nav.jump(5))
        self.assertEqual(nav.current_index, 4)
        self.assertTrue(nav.jump(1))
        self.assertEqual(nav.current_index, 0)


class TestConstruction(unittest.TestCase):

    def test_zero_pages_rejected(self):
        with self.assertRaises(ValueError):
            NavigationState(0)

    def test_index_out_of_range_rejected(self):
        with self.assertRaises(ValueError):
            NavigationState(3, current_index=3)


class TestParsePageNumber(unittest.TestCase):
    """Replies are parsed as whole numbers; everything else is rejected."""

    def test_plain_numbers(self):
        self.assertEqual(parse_page_number("3"), 3)
        self.assertEqual(parse_page_number("  12 \n"), 12)
        self.assertEqual(parse_page_number("+4"), 4)
        self.assertEqual(parse_page_number("-2"), -2)
        self.assertEqual(parse_page_number("0"), 0)

    def test_non_numbers(self):
        for text in ("abc", "", "   ", "3.5", "1e3", "3 pages", "--1", "²"):
            self.assertIsNone(parse_page_number(text), f"{text!r} should not parse")

    def test_non_string_values(self):
        self.assertEqual(parse_page_number(7), 7)
        self.assertIsNone(parse_page_number(True))
        self.assertIsNone(parse_page_number(None))
        self.assertIsNone(parse_page_number(2.0))

    def test_overlong_numbers_rejected(self):
        self.assertIsNone(parse_page_number("9" * 5000))
        self.assertIsNone(parse_page_number("-" + "1" * 19))
        self.assertEqual(parse_page_number("0" * 40 + "5"), 5)
        self.assertEqual(parse_page_number("9" * 18), 999999999999999999)


if __name__ == '__main__':
    unittest.main()
