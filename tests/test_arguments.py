"""Tests for prompt input tokenizing and flag parsing."""

from __future__ import annotations

from stanzals.arguments import parse_args, tokenize


class TestTokenize:
    """Tests for tokenize."""

    def test_whitespace_split(self) -> None:
        assert tokenize("  document-symbols   a.stanza ") == ["document-symbols", "a.stanza"]

    def test_double_quoted_span(self) -> None:
        assert tokenize('document-symbols "my dir/a.stanza"') == [
            "document-symbols",
            "my dir/a.stanza",
        ]

    def test_single_quoted_span(self) -> None:
        assert tokenize("x 'a b' c") == ["x", "a b", "c"]

    def test_escaped_active_quote(self) -> None:
        assert tokenize(r'x "say \"hi\""') == ["x", 'say "hi"']

    def test_other_quote_kept_inside_span(self) -> None:
        assert tokenize("""x "it's" """) == ["x", "it's"]

    def test_backslash_before_other_char_kept(self) -> None:
        assert tokenize(r'"C:\work\a.stanza"') == [r"C:\work\a.stanza"]

    def test_empty_quoted_token(self) -> None:
        assert tokenize('x ""') == ["x", ""]

    def test_unterminated_span_runs_to_end(self) -> None:
        assert tokenize('x "a b') == ["x", "a b"]

    def test_empty_input(self) -> None:
        assert tokenize("   ") == []


class TestParseArgs:
    """Tests for parse_args."""

    def test_command_and_params(self) -> None:
        args = parse_args(["document-symbols", "a.stanza"])
        assert args.command == "document-symbols"
        assert args.params == ["a.stanza"]

    def test_long_flag(self) -> None:
        args = parse_args(["folder-symbols", "--nocore"])
        assert args.flag("nocore")
        assert args.params == []

    def test_negated_flag(self) -> None:
        assert not parse_args(["folder-symbols", "--no-nocore"]).flag("nocore")

    def test_flag_with_value(self) -> None:
        args = parse_args(["hover", "--line=3"])
        assert args.flags == {"line": "3"}

    def test_short_flags(self) -> None:
        args = parse_args(["x", "-ab"])
        assert args.flags == {"a": True, "b": True}

    def test_negative_number_is_positional(self) -> None:
        assert parse_args(["x", "-3"]).params == ["-3"]

    def test_double_dash_ends_options(self) -> None:
        args = parse_args(["x", "--", "--nocore"])
        assert args.params == ["--nocore"]
        assert args.flags == {}

    def test_empty(self) -> None:
        assert parse_args([]).command is None
