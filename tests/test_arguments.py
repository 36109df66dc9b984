"""
Tests for argument parsing.

Tests:
- Quote-aware comma splitting
- Named / positional classification
- Index preservation
- Parameter binding
"""

import pytest

from tradehook.commands import (
    Param,
    parse_arguments,
    split_arguments,
    classify_argument,
    bind_params,
)


class TestSplitArguments:
    """Tests for the comma tokenizer."""

    def test_simple_split(self):
        assert split_arguments("a, b ,c") == ["a", "b", "c"]

    def test_comma_inside_quotes(self):
        assert split_arguments('a=1,b="x,y",2') == ["a=1", 'b="x,y"', "2"]

    def test_unterminated_quote_runs_to_end(self):
        assert split_arguments('a, "b, c') == ["a", '"b, c']

    def test_empty_tokens_dropped(self):
        assert split_arguments("a,,b") == ["a", "b"]

    def test_whitespace_tokens_hold_position(self):
        assert split_arguments("a, ,b") == ["a", "", "b"]

    def test_empty(self):
        assert split_arguments("") == []


class TestClassifyArgument:
    """Tests for named/positional classification."""

    def test_named_quoted(self):
        assert classify_argument('note = "hello, world"', 0) == Param("note", "hello, world", 0)

    def test_named_quoted_empty(self):
        assert classify_argument('note=""', 3) == Param("note", "", 3)

    def test_named_bare(self):
        assert classify_argument("amount=0.5", 1) == Param("amount", "0.5", 1)

    def test_named_bare_with_spaces(self):
        assert classify_argument("side = buy", 0) == Param("side", "buy", 0)

    def test_positional_quoted(self):
        assert classify_argument('"BTC"', 2) == Param("", "BTC", 2)

    def test_positional_bare(self):
        param = classify_argument("10s", 0)
        assert param.is_positional
        assert param.value == "10s"

    def test_missing_value_is_positional(self):
        assert classify_argument("a=", 0) == Param("", "a=", 0)


class TestParseArguments:
    """Tests for parse_arguments."""

    def test_mixed_arguments(self):
        """Quoted commas do not split and indexes follow argument order."""
        params = parse_arguments('a=1,b="x,y",2')

        assert params == [
            Param("a", "1", 0),
            Param("b", "x,y", 1),
            Param("", "2", 2),
        ]

    def test_empty_string(self):
        assert parse_arguments("") == []

    def test_blank_argument_keeps_index(self):
        """A whitespace-only argument yields no Param but uses up its index."""
        assert parse_arguments("1, ,2") == [Param("", "1", 0), Param("", "2", 2)]

    def test_empty_argument_takes_no_index(self):
        assert parse_arguments("1,,2") == [Param("", "1", 0), Param("", "2", 1)]

    @pytest.mark.parametrize("raw,count", [
        ("1", 1),
        ("1,2", 2),
        ("amount=1, price=2, tag=x", 3),
        ("a,b,c,d,e", 5),
    ])
    def test_one_param_per_token(self, raw, count):
        params = parse_arguments(raw)
        assert len(params) == count
        assert [p.index for p in params] == list(range(count))


class TestBindParams:
    """Tests for binding params onto expected arguments."""

    def test_positional_by_index(self):
        params = parse_arguments("1, 50000")
        bound = bind_params(params, {"amount": None, "price": None, "tag": ""})

        assert bound == {"amount": "1", "price": "50000", "tag": ""}

    def test_blank_argument_leaves_slot_default(self):
        params = parse_arguments("1, , grid")
        bound = bind_params(params, {"amount": None, "price": None, "tag": ""})

        assert bound == {"amount": "1", "price": None, "tag": "grid"}

    def test_named_overrides_position(self):
        params = parse_arguments("price=100, 2")
        bound = bind_params(params, {"amount": None, "price": None})

        # "2" is at index 1, which is the price slot, but price is named
        assert bound == {"amount": None, "price": "100"}

    def test_named_case_insensitive(self):
        params = parse_arguments("Amount=3")
        assert bind_params(params, {"amount": None}) == {"amount": "3"}

    def test_unknown_names_ignored(self):
        params = parse_arguments("colour=red")
        assert bind_params(params, {"amount": "1"}) == {"amount": "1"}
