"""
Expression variants for PDDL conditions, effects, init facts and goals.

Every variant carries a `kind` discriminant and a `children()` method that
returns its nested expressions. Builders exist for two inputs: S-expression
trees from the local parser, and the JSON payloads of the remote parsing
service (`type`-tagged dicts).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Union

from .sexpr import SExpr, to_string

# =========================
#  Keyword tables
# =========================

COMPARATOR_LABELS: Dict[str, str] = {
    "=": "=",
    "equal": "=",
    "<=": "<=",
    "lesser-equal": "<=",
    "≤": "<=",
    ">=": ">=",
    "greater-equal": ">=",
    "≥": ">=",
    "<": "<",
    "lesser": "<",
    ">": ">",
    "greater": ">",
}
COMPARATOR_OPS = frozenset(k for k in COMPARATOR_LABELS if k not in ("≤", "≥"))

NUMERIC_OPS = frozenset({"increase", "decrease", "assign", "scale-up", "scale-down"})

ARITHMETIC_OPS: Dict[str, str] = {
    "+": "+",
    "plus": "+",
    "-": "-",
    "minus": "-",
    "subtract": "-",
    "*": "*",
    "times": "*",
    "multiply": "*",
    "/": "/",
    "divide": "/",
}

CONNECTIVES = frozenset({"and", "or", "imply", "preference"})
QUANTIFIERS = frozenset({"forall", "exists"})
TIMED_SPECIFIERS = {("at", "start"), ("at", "end"), ("over", "all")}

# Operator glyphs shown on numeric-tree nodes.
OPERATOR_LABELS: Dict[str, str] = {
    "times": "×",
    "*": "×",
    "multiply": "×",
    "plus": "+",
    "+": "+",
    "minus": "-",
    "-": "-",
    "subtract": "-",
    "divide": "÷",
    "/": "÷",
    "scale-up": "↑",
    "scale-down": "↓",
    "assign": "=",
}

_NUMBER = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


# =========================
#  Variants
# =========================

@dataclass
class TypedParameter:
    name: str
    type: Optional[str] = None
    kind: ClassVar[str] = "parameter"

    def children(self) -> List["Expression"]:
        return []

    @property
    def label(self) -> str:
        return f"{self.name}: {self.type}" if self.type else self.name


@dataclass
class NumberLiteral:
    value: float
    kind: ClassVar[str] = "number"

    def children(self) -> List["Expression"]:
        return []

    @property
    def text(self) -> str:
        return format_number(self.value)


@dataclass
class PredicateExpr:
    name: str
    arguments: List["Argument"] = field(default_factory=list)
    kind: ClassVar[str] = "predicate"

    def children(self) -> List["Expression"]:
        return _nested(self.arguments)


@dataclass
class FunctionExpr:
    name: str
    arguments: List["Argument"] = field(default_factory=list)
    kind: ClassVar[str] = "function"

    def children(self) -> List["Expression"]:
        return _nested(self.arguments)


@dataclass
class NotExpr:
    argument: "Expression"
    kind: ClassVar[str] = "not"

    def children(self) -> List["Expression"]:
        return [self.argument]


@dataclass
class NumericExpr:
    """increase/decrease/assign/scale-up/scale-down; the modified quantity comes first."""
    op: str
    arguments: List["Argument"] = field(default_factory=list)
    kind: ClassVar[str] = "numeric"

    def __post_init__(self):
        if self.op not in NUMERIC_OPS:
            raise ValueError(f"Unknown numeric effect '{self.op}'")

    def children(self) -> List["Expression"]:
        return _nested(self.arguments)

    @property
    def target(self) -> Optional["Argument"]:
        return self.arguments[0] if self.arguments else None


@dataclass
class ComparatorExpr:
    op: str
    arguments: List["Argument"] = field(default_factory=list)
    kind: ClassVar[str] = "comparator"

    def __post_init__(self):
        if len(self.arguments) > 2:
            raise ValueError(
                f"Comparator '{self.op}' takes at most two arguments, got {len(self.arguments)}"
            )

    def children(self) -> List["Expression"]:
        return _nested(self.arguments)

    @property
    def symbol(self) -> str:
        return comparator_symbol(self.op)


@dataclass
class ArithmeticExpr:
    op: str
    arguments: List["Argument"] = field(default_factory=list)
    kind: ClassVar[str] = "arithmetic"

    def children(self) -> List["Expression"]:
        return _nested(self.arguments)


@dataclass
class CompositeExpr:
    """Logical containers: and/or/imply/forall/exists/when and timed specifiers."""
    op: str
    items: List["Expression"] = field(default_factory=list)
    parameters: List[TypedParameter] = field(default_factory=list)
    kind: ClassVar[str] = "composite"

    def children(self) -> List["Expression"]:
        return list(self.items)


Expression = Union[
    PredicateExpr,
    FunctionExpr,
    NotExpr,
    NumericExpr,
    NumberLiteral,
    ComparatorExpr,
    ArithmeticExpr,
    CompositeExpr,
]
Argument = Union[Expression, TypedParameter]


def _nested(arguments: List[Argument]) -> List[Expression]:
    return [a for a in arguments if not isinstance(a, TypedParameter)]


# =========================
#  Label helpers
# =========================

def is_number(text: str) -> bool:
    return bool(_NUMBER.match(str(text).strip()))


def format_number(value: float) -> str:
    v = float(value)
    if v.is_integer():
        return str(int(v))
    return repr(v)


def strip_variable(name: str) -> str:
    return name[1:] if name.startswith("?") else name


def stringify_argument(arg: Optional[Argument]) -> str:
    if arg is None:
        return "?"
    if isinstance(arg, TypedParameter):
        return arg.name
    if isinstance(arg, NumberLiteral):
        return arg.text
    if isinstance(arg, FunctionExpr):
        return format_function_label(arg)
    if isinstance(arg, PredicateExpr):
        return arg.name
    if isinstance(arg, (ArithmeticExpr, NumericExpr)):
        return operator_label(arg.op)
    if isinstance(arg, ComparatorExpr):
        return arg.symbol
    return arg.kind


def format_function_label(fn: FunctionExpr, include_arguments: bool = True) -> str:
    if not include_arguments:
        return fn.name
    texts = [t for t in (stringify_argument(a) for a in fn.arguments) if t and t != "?"]
    return f"{fn.name}({', '.join(texts)})" if texts else fn.name


def predicate_label(name: str, negated: bool) -> str:
    return f"not {name}" if negated else name


def comparator_symbol(op: Optional[str]) -> str:
    if not op:
        return "="
    op = op.strip()
    return COMPARATOR_LABELS.get(op, COMPARATOR_LABELS.get(op.lower(), op))


def operator_label(op: Optional[str], fallback: Optional[str] = None) -> str:
    if not op:
        return fallback or "?"
    op = op.strip()
    return OPERATOR_LABELS.get(op, fallback or op)


def argument_names(expr: Expression) -> List[str]:
    """Bare names of the parameter/object arguments of a predicate or function."""
    if isinstance(expr, (PredicateExpr, FunctionExpr)):
        return [a.name for a in expr.arguments if isinstance(a, TypedParameter)]
    return []


def to_pddl(arg: Argument, variables: FrozenSet[str] = frozenset()) -> str:
    """Render an expression back to PDDL surface syntax; names in `variables` get their `?` back."""
    if isinstance(arg, TypedParameter):
        return f"?{arg.name}" if arg.name in variables else arg.name
    if isinstance(arg, NumberLiteral):
        return arg.text
    if isinstance(arg, NotExpr):
        return f"(not {to_pddl(arg.argument, variables)})"
    if isinstance(arg, CompositeExpr):
        parts = [arg.op]
        if arg.parameters:
            params = " ".join(f"?{p.name} - {p.type}" if p.type else f"?{p.name}" for p in arg.parameters)
            parts.append(f"({params})")
        inner = variables | {p.name for p in arg.parameters}
        parts.extend(to_pddl(c, inner) for c in arg.items)
        return "(" + " ".join(parts) + ")"
    head = arg.name if isinstance(arg, (PredicateExpr, FunctionExpr)) else arg.op
    return "(" + " ".join([head] + [to_pddl(a, variables) for a in arg.arguments]) + ")"


def literal_text(arg: Optional[Argument]) -> Optional[str]:
    """Numeric text of a literal argument, or None when the argument is structured."""
    if isinstance(arg, NumberLiteral):
        return arg.text
    if isinstance(arg, TypedParameter) and is_number(arg.name):
        return arg.name.strip()
    return None


# =========================
#  Builders: S-expressions
# =========================

Scope = Dict[str, Optional[str]]


def parse_typed_list(entries: List[SExpr], variables: bool = False) -> List[TypedParameter]:
    """
    Split `a b - t1 c - t2 d` into typed entries.

    A run of names followed by `- type` takes that type; a trailing run with
    no separator stays untyped. `(either t1 t2)` types render as their text.
    With variables=True the leading '?' is dropped from names.
    """
    out: List[TypedParameter] = []
    pending: List[str] = []
    i = 0
    n = len(entries)
    while i < n:
        tok = entries[i]
        if tok == "-":
            if i + 1 >= n:
                raise ValueError("Typed list ends with '-' and no type")
            typ = entries[i + 1]
            type_text = to_string(typ) if isinstance(typ, list) else str(typ)
            if not pending:
                raise ValueError(f"Type '{type_text}' has no names before it")
            out.extend(TypedParameter(name, type_text) for name in pending)
            pending = []
            i += 2
            continue
        if isinstance(tok, list):
            raise ValueError(f"Unexpected nested list in typed list: {to_string(tok)}")
        pending.append(strip_variable(tok) if variables else tok)
        i += 1
    out.extend(TypedParameter(name) for name in pending)
    return out


def _term(atom: str, scope: Scope) -> Argument:
    if is_number(atom):
        return NumberLiteral(float(atom))
    name = strip_variable(atom)
    return TypedParameter(name, scope.get(name))


def build_operand(node: SExpr, scope: Optional[Scope] = None) -> Argument:
    """Resolve a numeric operand: literal, parameter, arithmetic tree or function call."""
    scope = scope or {}
    if isinstance(node, str):
        return _term(node, scope)
    if not node:
        raise ValueError("Empty numeric expression '()'")
    head = node[0]
    if not isinstance(head, str):
        raise ValueError(f"Expected a function name, got {to_string(node)}")
    op = head.lower()
    if op in ARITHMETIC_OPS:
        return ArithmeticExpr(op, [build_operand(a, scope) for a in node[1:]])
    return FunctionExpr(head, [build_operand(a, scope) for a in node[1:]])


def build_expression(node: SExpr, scope: Optional[Scope] = None) -> Expression:
    """Build one condition/effect/fact from its S-expression."""
    scope = dict(scope or {})
    if isinstance(node, str):
        if is_number(node):
            return NumberLiteral(float(node))
        return PredicateExpr(node, [])
    if not node:
        return CompositeExpr("and", [])

    head = node[0]
    if not isinstance(head, str):
        raise ValueError(f"Expected an operator or predicate name, got {to_string(node)}")
    op = head.lower()
    rest = node[1:]

    if op == "not":
        if len(rest) != 1:
            raise ValueError(f"'not' expects exactly one argument: {to_string(node)}")
        return NotExpr(build_expression(rest[0], scope))

    if op in CONNECTIVES:
        if op == "preference" and rest and isinstance(rest[0], str):
            rest = rest[1:]
        return CompositeExpr(op, [build_expression(c, scope) for c in rest])

    if op in QUANTIFIERS:
        if not rest or not isinstance(rest[0], list):
            raise ValueError(f"'{op}' expects a variable list: {to_string(node)}")
        params = parse_typed_list(rest[0], variables=True)
        inner = dict(scope)
        inner.update({p.name: p.type for p in params})
        return CompositeExpr(op, [build_expression(c, inner) for c in rest[1:]], params)

    if op == "when":
        return CompositeExpr(op, [build_expression(c, scope) for c in rest])

    if (
        len(rest) == 2
        and isinstance(rest[0], str)
        and (op, rest[0].lower()) in TIMED_SPECIFIERS
        and isinstance(rest[1], list)
    ):
        return CompositeExpr(f"{op} {rest[0].lower()}", [build_expression(rest[1], scope)])

    if op in COMPARATOR_OPS:
        return ComparatorExpr(op, [build_operand(a, scope) for a in rest])

    if op in NUMERIC_OPS:
        return NumericExpr(op, [build_operand(a, scope) for a in rest])

    args: List[Argument] = [
        _term(a, scope) if isinstance(a, str) else build_operand(a, scope) for a in rest
    ]
    return PredicateExpr(head, args)


# =========================
#  Builders: remote payloads
# =========================

_EXPRESSION_HINTS = ("arguments", "children", "argument", "items")


def argument_from_dict(raw: Any) -> Argument:
    if isinstance(raw, bool):
        raise ValueError(f"Bad expression argument: {raw!r}")
    if isinstance(raw, (int, float)):
        return NumberLiteral(float(raw))
    if isinstance(raw, str):
        text = raw.strip()
        if is_number(text):
            return NumberLiteral(float(text))
        return TypedParameter(strip_variable(text))
    if not isinstance(raw, dict):
        raise ValueError(f"Bad expression argument: {raw!r}")
    typ = str(raw.get("type") or "").lower()
    if any(k in raw for k in _EXPRESSION_HINTS) or typ in ("predicate", "function"):
        return expression_from_dict(raw)
    if typ == "number" and "value" in raw:
        return NumberLiteral(float(raw["value"]))
    if "name" in raw:
        return TypedParameter(strip_variable(str(raw["name"])), raw.get("type"))
    if _is_expression_type(typ):
        return expression_from_dict(raw)
    raise ValueError(f"Bad expression argument: {raw!r}")


def _is_expression_type(typ: str) -> bool:
    t = typ.lower()
    return (
        t in ("predicate", "function", "not", "number")
        or t in NUMERIC_OPS
        or t in COMPARATOR_OPS
        or t in ARITHMETIC_OPS
    )


def expression_from_dict(raw: Dict[str, Any]) -> Expression:
    """Convert one `type`-tagged expression dict from the parsing service."""
    if not isinstance(raw, dict):
        raise ValueError(f"Expected an expression object, got {raw!r}")
    typ = str(raw.get("type") or "").strip()
    op = typ.lower()
    args = [argument_from_dict(a) for a in (raw.get("arguments") or [])]

    if op == "predicate":
        return PredicateExpr(str(raw.get("name", "")), args)
    if op == "function":
        return FunctionExpr(str(raw.get("name", "")), args)
    if op == "number":
        return NumberLiteral(float(raw.get("value", 0)))
    if op == "not":
        inner = raw.get("argument")
        if inner is None:
            kids = raw.get("children") or raw.get("items") or []
            if len(kids) != 1:
                raise ValueError("'not' expects exactly one argument")
            inner = kids[0]
        return NotExpr(expression_from_dict(inner))
    if op in NUMERIC_OPS:
        return NumericExpr(op, args)
    if op in COMPARATOR_OPS:
        return ComparatorExpr(op, args)
    if op in ARITHMETIC_OPS:
        return ArithmeticExpr(op, args)

    items: List[Expression] = []
    for key in ("children", "items"):
        items.extend(expression_from_dict(c) for c in (raw.get(key) or []))
    if raw.get("argument") is not None:
        items.append(expression_from_dict(raw["argument"]))
    items.extend(a for a in args if not isinstance(a, TypedParameter))
    return CompositeExpr(op or "and", items)
