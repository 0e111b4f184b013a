"""Tokenizer and S-expression builder."""
import pytest

from pddlviz.pddl.errors import EmptyInputError, PddlError, UnbalancedParensError
from pddlviz.pddl.sexpr import build_sexpr, parse_many, parse_one, strip_comments, to_string, tokenize


def test_tokenize_and_round_trip():
    tokens = tokenize("(a (b c))")
    assert tokens == ["(", "a", "(", "b", "c", ")", ")"]
    built = build_sexpr(tokens)
    assert built == [["a", ["b", "c"]]]
    assert to_string(built[0]) == "(a (b c))"


def test_tokenize_splits_on_parens_without_whitespace():
    assert tokenize("(at?r ?l)(x)") == ["(", "at?r", "?l", ")", "(", "x", ")"]


def test_comments_are_stripped_to_end_of_line():
    text = "(a ; trailing comment (\n b)"
    assert strip_comments(text) == "(a \n b)"
    assert parse_one(text) == ["a", "b"]


def test_excess_close_reports_first_offending_token():
    tokens = tokenize("(a)) (b))")
    with pytest.raises(UnbalancedParensError) as exc:
        build_sexpr(tokens)
    assert exc.value.position == 3
    assert "Unexpected closing parenthesis" in str(exc.value)


def test_unclosed_list_is_unbalanced():
    with pytest.raises(UnbalancedParensError, match="Unbalanced parentheses"):
        parse_many("(a (b c)")


@pytest.mark.parametrize("text", ["", "   \n\t", ";just a comment", "; one\n; two\n"])
def test_empty_input(text):
    with pytest.raises(EmptyInputError, match="PDDL content is empty."):
        parse_many(text)


def test_top_level_atoms_are_dropped():
    assert parse_many("stray (a) other (b c)") == [["a"], ["b", "c"]]


def test_errors_share_value_error_base():
    with pytest.raises(ValueError):
        parse_many(")")
    assert issubclass(UnbalancedParensError, PddlError)


def test_parse_one_requires_single_expression():
    with pytest.raises(PddlError):
        parse_one("(a) (b)")
