"""Tests for text position helpers."""

from checkmate.core.text import (
    byte_len,
    byte_to_char_col,
    char_to_byte_col,
    get_next_ordered_marker,
    is_char_boundary,
    is_end_of_line,
    leading_whitespace,
    slice_bytes,
    trim_leading,
    trim_trailing,
)

LINE = "- □ Test with ✔ symbols"


class TestByteColumns:
    """Tests for converting between code point and byte columns."""

    def test_byte_len_counts_encoded_bytes(self) -> None:
        """Test that multi-byte characters count as several bytes."""
        assert byte_len("abc") == 3
        assert byte_len("□") == 3
        assert byte_len("é") == 2

    def test_char_to_byte_col(self) -> None:
        """Test conversion after a three-byte marker."""
        assert char_to_byte_col(LINE, 3) == 5

    def test_char_to_byte_col_clamps(self) -> None:
        """Test that out-of-range columns are clamped."""
        assert char_to_byte_col(LINE, -4) == 0
        assert char_to_byte_col(LINE, 500) == byte_len(LINE)

    def test_byte_to_char_col(self) -> None:
        """Test the inverse conversion."""
        assert byte_to_char_col(LINE, 5) == 3

    def test_byte_to_char_col_inside_sequence(self) -> None:
        """Test that a column inside a character resolves to that character."""
        assert byte_to_char_col(LINE, 3) == 2

    def test_byte_to_char_col_clamps(self) -> None:
        """Test that out-of-range byte columns are clamped."""
        assert byte_to_char_col(LINE, -1) == 0
        assert byte_to_char_col(LINE, 999) == len(LINE)

    def test_is_char_boundary(self) -> None:
        """Test boundary detection around a multi-byte marker."""
        assert is_char_boundary(LINE, 2)
        assert not is_char_boundary(LINE, 3)
        assert not is_char_boundary(LINE, 4)
        assert is_char_boundary(LINE, 5)
        assert is_char_boundary(LINE, byte_len(LINE))
        assert not is_char_boundary(LINE, byte_len(LINE) + 1)

    def test_slice_bytes(self) -> None:
        """Test slicing by byte columns."""
        assert slice_bytes(LINE, 2, 5) == "□"
        assert slice_bytes(LINE, 6) == "Test with ✔ symbols"


class TestLineHelpers:
    """Tests for whitespace and end-of-line helpers."""

    def test_trim(self) -> None:
        """Test leading and trailing trimming."""
        assert trim_leading("  x  ") == "x  "
        assert trim_trailing("  x  ") == "  x"

    def test_leading_whitespace(self) -> None:
        """Test indentation extraction, tabs included."""
        assert leading_whitespace("  \t- x") == "  \t"
        assert leading_whitespace("x") == ""

    def test_is_end_of_line(self) -> None:
        """Test end-of-line detection with and without trailing whitespace."""
        assert is_end_of_line("abc", 2)
        assert not is_end_of_line("abc  ", 2)
        assert is_end_of_line("abc  ", 2, include_whitespace=False)


class TestNextOrderedMarker:
    """Tests for get_next_ordered_marker."""

    def test_period_delimiter(self) -> None:
        """Test incrementing a period-delimited marker."""
        assert get_next_ordered_marker("1. [ ] Task") == "2."

    def test_paren_delimiter(self) -> None:
        """Test incrementing a paren-delimited marker."""
        assert get_next_ordered_marker("49) [ ] C") == "50)"

    def test_indented_bare_marker(self) -> None:
        """Test a bare marker with indentation."""
        assert get_next_ordered_marker("   9.") == "10."

    def test_restart(self) -> None:
        """Test restarting numbering at 1."""
        assert get_next_ordered_marker("7) x", restart=True) == "1)"

    def test_unordered(self) -> None:
        """Test that unordered markers give None."""
        assert get_next_ordered_marker("- [ ] E") is None
