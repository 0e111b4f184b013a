from __future__ import annotations

import re
from typing import List, Union

from .errors import EmptyInputError, SExprError, TokenizeEmptyError, UnbalancedParensError

SExpr = Union[str, List["SExpr"]]

_COMMENT = re.compile(r";[^\n\r]*")

__all__ = [
    "SExpr",
    "SExprError",
    "strip_comments",
    "tokenize",
    "build_sexpr",
    "parse_many",
    "parse_one",
    "to_string",
]


def strip_comments(text: str) -> str:
    return _COMMENT.sub("", text or "")


def tokenize(text: str) -> List[str]:
    tokens: List[str] = []
    i = 0
    n = len(text or "")
    while i < n:
        ch = text[i]
        if ch.isspace():
            i += 1
            continue
        if ch in ("(", ")"):
            tokens.append(ch)
            i += 1
            continue
        j = i
        while j < n and (not text[j].isspace()) and text[j] not in ("(", ")"):
            j += 1
        tokens.append(text[i:j])
        i = j
    return tokens


def build_sexpr(tokens: List[str]) -> List[SExpr]:
    """
    Fold a token stream into nested lists.

    The implicit top-level list is never closed by a token; closing it is an
    error reported at the index of the offending ')'. Bare top-level atoms are
    dropped from the result.
    """
    top: List[SExpr] = []
    stack: List[List[SExpr]] = [top]

    for pos, tok in enumerate(tokens):
        if tok == "(":
            child: List[SExpr] = []
            stack[-1].append(child)
            stack.append(child)
        elif tok == ")":
            if len(stack) == 1:
                raise UnbalancedParensError(
                    f"Unexpected closing parenthesis while parsing PDDL (token {pos}).",
                    position=pos,
                )
            stack.pop()
        else:
            stack[-1].append(tok)

    if len(stack) != 1:
        raise UnbalancedParensError("Unbalanced parentheses found while parsing PDDL.")
    return [x for x in top if isinstance(x, list)]


def parse_many(text: str) -> List[SExpr]:
    """Strip comments, tokenize and build every top-level list in `text`."""
    cleaned = strip_comments(text).strip()
    if not cleaned:
        raise EmptyInputError()
    tokens = tokenize(cleaned)
    if not tokens:
        raise TokenizeEmptyError()
    return build_sexpr(tokens)


def parse_one(text: str) -> SExpr:
    exprs = parse_many(text)
    if len(exprs) != 1:
        raise SExprError("Expected single S-expression")
    return exprs[0]


def to_string(expr: SExpr) -> str:
    if isinstance(expr, list):
        return "(" + " ".join(to_string(x) for x in expr) + ")"
    return str(expr)
