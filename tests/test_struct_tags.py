"""Tests for Go struct tag parsing."""

import pytest

from schema_architect.struct_tags import (
    lookup_tag,
    parse_json_tag,
    parse_struct_tag,
    parse_with_tag,
    unquote_literal,
)


class TestUnquoteLiteral:
    def test_raw_literal(self):
        assert unquote_literal('`json:"id"`') == 'json:"id"'

    def test_interpreted_literal(self):
        assert unquote_literal('"json:\\"id\\""') == 'json:"id"'

    def test_go_only_escapes(self):
        assert unquote_literal(r'"it\'s"') == "it's"
        assert unquote_literal(r'"\x41"') == "A"

    def test_malformed(self):
        assert unquote_literal("json") is None
        assert unquote_literal('"unterminated') is None


class TestParseStructTag:
    def test_multiple_keys(self):
        tag = 'json:"passport,omitempty" v:"required|length:6,30" dc:"Login"'
        pairs = parse_struct_tag(tag)
        assert pairs == {
            "json": "passport,omitempty",
            "v": "required|length:6,30",
            "dc": "Login",
        }

    def test_extra_spaces(self):
        pairs = parse_struct_tag('  json:"id"    orm:"with:uid=id"  ')
        assert pairs["json"] == "id"
        assert pairs["orm"] == "with:uid=id"

    def test_escaped_quote_in_value(self):
        pairs = parse_struct_tag(r'dc:"say \"hi\"" json:"x"')
        assert pairs["dc"] == 'say "hi"'
        assert pairs["json"] == "x"

    def test_value_with_go_only_escape(self):
        pairs = parse_struct_tag(r'json:"a" dc:"it\'s"')
        assert pairs == {"json": "a", "dc": "it's"}

    def test_first_key_wins(self):
        assert parse_struct_tag('json:"a" json:"b"') == {"json": "a"}

    def test_stops_at_malformed_pair(self):
        pairs = parse_struct_tag('json:"id" broken orm:"with:uid"')
        assert pairs == {"json": "id"}

    def test_empty(self):
        assert parse_struct_tag("") == {}

    def test_lookup_missing_key(self):
        assert lookup_tag('json:"id"', "orm") == ""


class TestParseJsonTag:
    @pytest.mark.parametrize(
        ("tag", "expected"),
        [
            ("name", "name"),
            ("name,omitempty", "name"),
            (",omitempty", ""),
            ("-", ""),
            ("", ""),
        ],
    )
    def test_json_tag(self, tag: str, expected: str):
        assert parse_json_tag(tag) == expected


class TestParseWithTag:
    def test_explicit_keys(self):
        rel = parse_with_tag("with:uid=id")
        assert rel is not None
        assert rel.target_key == "uid"
        assert rel.source_key == "id"

    def test_spacing_is_normalized(self):
        compact = parse_with_tag("with:uid=id")
        spaced = parse_with_tag("with: uid = id")
        assert compact is not None and spaced is not None
        assert (spaced.target_key, spaced.source_key) == ("uid", "id")
        assert compact.identity() == spaced.identity()

    def test_implicit_source_key_defaults_to_id(self):
        rel = parse_with_tag("with:user_id")
        assert rel is not None
        assert rel.target_key == "user_id"
        assert rel.source_key == "id"

    def test_with_among_other_segments(self):
        rel = parse_with_tag("table:user_detail, with:uid=id, where:status=1")
        assert rel is not None
        assert (rel.target_key, rel.source_key) == ("uid", "id")

    def test_no_with_segment(self):
        assert parse_with_tag("table:user, do:true") is None

    def test_empty_with_segment(self):
        assert parse_with_tag("with:") is None
