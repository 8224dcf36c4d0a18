"""
Unit tests for query string and form decoding.
"""

from tinyserve.http.forms import parse_form_data, percent_decode


class TestPercentDecode:
    """Tests for percent_decode()."""

    def test_decodes_escapes(self):
        assert percent_decode("hello%20world") == "hello world"
        assert percent_decode("%2Fetc%2Fpasswd") == "/etc/passwd"

    def test_plus_is_not_a_space(self):
        assert percent_decode("a+b") == "a+b"

    def test_utf8_sequences(self):
        assert percent_decode("caf%C3%A9") == "café"

    def test_invalid_utf8_is_replaced(self):
        assert percent_decode("%FF") == "�"

    def test_plain_text_unchanged(self):
        assert percent_decode("plain") == "plain"


class TestParseFormData:
    """Tests for parse_form_data()."""

    def test_pairs(self):
        assert parse_form_data("name=John&age=30") == {"name": "John", "age": "30"}

    def test_keys_and_values_are_decoded(self):
        assert parse_form_data("full%20name=John%20Doe") == {"full name": "John Doe"}

    def test_key_without_value(self):
        assert parse_form_data("flag&x=1") == {"flag": "", "x": "1"}

    def test_value_may_contain_equals(self):
        assert parse_form_data("expr=a=b") == {"expr": "a=b"}

    def test_empty_segments_are_skipped(self):
        assert parse_form_data("a=1&&b=2&") == {"a": "1", "b": "2"}

    def test_empty_input(self):
        assert parse_form_data("") == {}

    def test_last_duplicate_wins(self):
        assert parse_form_data("x=1&x=2") == {"x": "2"}
