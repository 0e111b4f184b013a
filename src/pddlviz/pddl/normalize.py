from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .expressions import (
    ComparatorExpr,
    Expression,
    NotExpr,
    NumericExpr,
    PredicateExpr,
    predicate_label,
)


class Role(str, Enum):
    PRECONDITION = "precondition"
    EFFECT = "effect"
    INIT = "init"
    GOAL = "goal"


@dataclass
class CollectedPredicate:
    expr: PredicateExpr
    negated: bool
    role: Role

    @property
    def label(self) -> str:
        return predicate_label(self.expr.name, self.negated)


@dataclass
class CollectedComparator:
    expr: ComparatorExpr
    negated: bool
    role: Role


@dataclass
class CollectedNumeric:
    expr: NumericExpr
    negated: bool
    role: Role


@dataclass
class NormalizedExpressions:
    predicates: List[CollectedPredicate] = field(default_factory=list)
    comparators: List[CollectedComparator] = field(default_factory=list)
    numeric_effects: List[CollectedNumeric] = field(default_factory=list)

    def unique_predicates(self) -> List[CollectedPredicate]:
        """First occurrence of each rendered label, in encounter order."""
        seen = set()
        out: List[CollectedPredicate] = []
        for p in self.predicates:
            if p.label in seen:
                continue
            seen.add(p.label)
            out.append(p)
        return out


def _walk(expr: Expression, negated: bool, role: Role, out: NormalizedExpressions) -> None:
    if isinstance(expr, NotExpr):
        _walk(expr.argument, not negated, role, out)
    elif isinstance(expr, PredicateExpr):
        out.predicates.append(CollectedPredicate(expr, negated, role))
    elif isinstance(expr, ComparatorExpr):
        out.comparators.append(CollectedComparator(expr, negated, role))
    elif isinstance(expr, NumericExpr):
        out.numeric_effects.append(CollectedNumeric(expr, negated, role))
    else:
        # containers are walked through without being collected
        for child in expr.children():
            _walk(child, negated, role, out)


def normalize(
    expressions: Iterable[Optional[Expression]],
    role: Role,
    out: Optional[NormalizedExpressions] = None,
) -> NormalizedExpressions:
    """
    Flatten a list of top-level expressions into the predicates, comparators
    and numeric effects found anywhere below them.

    Each `not` flips the polarity of everything beneath it, so an even number
    of nested negations yields a positive entry.
    """
    out = out if out is not None else NormalizedExpressions()
    for expr in expressions:
        if expr is not None:
            _walk(expr, False, role, out)
    return out
