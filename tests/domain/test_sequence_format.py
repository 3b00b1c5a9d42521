"""Tests for rendering counter values into business identifiers."""

import pytest

from asset_kernel.domain.sequence import (
    DEFAULT_FORMAT,
    SequenceFormat,
    format_sequence,
    numeric_value,
)


class TestFormatSequence:

    def test_request_id(self):
        assert format_sequence(1, SequenceFormat(prefix="REQ-", pad_width=6)) == "REQ-000001"

    def test_asset_id_with_offset(self):
        fmt = SequenceFormat(prefix="AST-", pad_width=5, start_offset=10001)
        assert format_sequence(1, fmt) == "AST-10001"
        assert format_sequence(2, fmt) == "AST-10002"

    def test_default_format_is_bare_padded_digits(self):
        assert format_sequence(42) == "00042"
        assert DEFAULT_FORMAT.prefix == ""

    def test_padding_widens_never_truncates(self):
        fmt = SequenceFormat(prefix="VEN-", pad_width=4)
        assert format_sequence(12345, fmt) == "VEN-12345"

    def test_zero_padding_width(self):
        assert format_sequence(7, SequenceFormat(prefix="X", pad_width=0)) == "X7"

    @pytest.mark.parametrize("value", [0, -1])
    def test_rejects_non_positive_values(self, value):
        with pytest.raises(ValueError):
            format_sequence(value)

    def test_distinct_values_render_distinct_ids(self):
        fmt = SequenceFormat(prefix="PUR-", pad_width=2)
        rendered = [format_sequence(v, fmt) for v in range(1, 500)]
        assert len(set(rendered)) == len(rendered)


class TestNumericValue:

    def test_without_offset(self):
        assert numeric_value(5, SequenceFormat()) == 5

    def test_offset_is_the_first_value(self):
        assert numeric_value(1, SequenceFormat(start_offset=500)) == 500


class TestSequenceFormatValidation:

    def test_negative_pad_width(self):
        with pytest.raises(ValueError):
            SequenceFormat(pad_width=-1)

    def test_negative_offset(self):
        with pytest.raises(ValueError):
            SequenceFormat(start_offset=-5)
