"""Expression variants, label helpers and parsing-service payload decoding."""
import pytest

from pddlviz.pddl.expressions import (
    ArithmeticExpr,
    ComparatorExpr,
    CompositeExpr,
    FunctionExpr,
    NotExpr,
    NumberLiteral,
    NumericExpr,
    PredicateExpr,
    TypedParameter,
    argument_from_dict,
    build_expression,
    comparator_symbol,
    expression_from_dict,
    format_function_label,
    format_number,
    operator_label,
    parse_typed_list,
    to_pddl,
)
from pddlviz.pddl.model import Domain, Problem
from pddlviz.pddl.sexpr import parse_one


def test_typed_list_with_either_and_trailing_untyped():
    params = parse_typed_list(parse_one("(?a ?b - (either x y) ?c)"), variables=True)
    assert params == [
        TypedParameter("a", "(either x y)"),
        TypedParameter("b", "(either x y)"),
        TypedParameter("c"),
    ]
    assert params[2].label == "c"


def test_numeric_and_comparator_validation():
    with pytest.raises(ValueError):
        NumericExpr("grow", [])
    with pytest.raises(ValueError):
        ComparatorExpr(">", [NumberLiteral(1), NumberLiteral(2), NumberLiteral(3)])
    assert ComparatorExpr("greater-equal", []).symbol == ">="
    assert comparator_symbol(None) == "="


def test_labels():
    fn = FunctionExpr("distance", [TypedParameter("a"), TypedParameter("b")])
    assert format_function_label(fn) == "distance(a, b)"
    assert format_function_label(fn, include_arguments=False) == "distance"
    assert operator_label("times") == "×"
    assert operator_label("scale-up") == "↑"
    assert operator_label(None, "numeric") == "numeric"
    assert format_number(3.0) == "3"
    assert format_number(2.5) == "2.5"


def test_arithmetic_operands():
    expr = build_expression(parse_one("(increase (total-cost) (* 2 (distance ?a ?b)))"))
    assert isinstance(expr, NumericExpr)
    product = expr.arguments[1]
    assert isinstance(product, ArithmeticExpr) and product.op == "*"
    assert product.arguments[0] == NumberLiteral(2)
    assert [c.kind for c in expr.children()] == ["function", "arithmetic"]


def test_to_pddl_restores_variables():
    expr = build_expression(parse_one("(forall (?b - block) (when (clear ?b) (not (on ?b ?x))))"))
    assert to_pddl(expr, frozenset({"x"})) == "(forall (?b - block) (when (clear ?b) (not (on ?b ?x))))"
    assert to_pddl(PredicateExpr("at", [TypedParameter("r1"), TypedParameter("hall")])) == "(at r1 hall)"


def test_argument_from_dict_kinds():
    assert argument_from_dict({"name": "?r", "type": "robot"}) == TypedParameter("r", "robot")
    assert argument_from_dict({"name": "n", "type": "number"}) == TypedParameter("n", "number")
    assert argument_from_dict({"type": "number", "value": 4}) == NumberLiteral(4)
    assert argument_from_dict(1.5) == NumberLiteral(1.5)
    assert argument_from_dict({"type": "function", "name": "total-cost"}) == FunctionExpr("total-cost", [])
    with pytest.raises(ValueError):
        argument_from_dict(True)


def test_expression_from_dict_tree():
    raw = {
        "type": "and",
        "children": [
            {"type": "not", "argument": {"type": "predicate", "name": "at", "arguments": [{"name": "r"}]}},
            {
                "type": ">=",
                "arguments": [
                    {"type": "function", "name": "fuel", "arguments": [{"name": "r"}]},
                    {"type": "number", "value": 1},
                ],
            },
        ],
    }
    expr = expression_from_dict(raw)
    assert isinstance(expr, CompositeExpr) and expr.op == "and"
    neg, cmp_ = expr.items
    assert neg == NotExpr(PredicateExpr("at", [TypedParameter("r")]))
    assert cmp_ == ComparatorExpr(">=", [FunctionExpr("fuel", [TypedParameter("r")]), NumberLiteral(1)])


def test_domain_and_problem_from_dict():
    domain = Domain.from_dict({
        "name": "nav",
        "types": ["robot", "location: object", {"name": "room", "parent": "location"}],
        "predicates": [{"name": "at", "arguments": [{"name": "?r", "type": "robot"}]}],
        "actions": [{
            "name": "wait",
            "parameters": [{"name": "?r", "type": "robot"}],
            "preconditions": [{"type": "predicate", "name": "at", "arguments": [{"name": "r"}]}],
            "actionDescription": "Do nothing",
        }],
    })
    assert [(t.name, t.parent) for t in domain.types] == [("robot", None), ("location", "object"), ("room", "location")]
    assert domain.actions[0].description == "Do nothing"
    assert domain.actions[0].preconditions[0].name == "at"

    problem = Problem.from_dict({
        "name": "p",
        "domain_name": "nav",
        "objects": [{"name": "r1", "type": "robot"}],
        "init": {"type": "predicate", "name": "at", "arguments": [{"name": "r1"}]},
        "initDescription": "  ",
        "metrics": {"type": "maximize", "arguments": [{"type": "function", "name": "score"}]},
    })
    assert problem.init_description is None
    assert len(problem.init) == 1
    assert problem.metric.direction == "maximize"
    assert problem.metric.expression == FunctionExpr("score", [])

    with pytest.raises(ValueError):
        Domain.from_dict({"name": "x"})
    with pytest.raises(ValueError):
        Problem.from_dict({"name": "x", "objects": "r1"})


@pytest.mark.parametrize(
    "payload",
    [
        {"actions": []},
        {"name": None, "actions": []},
        {"name": 7, "actions": []},
    ],
)
def test_domain_payload_requires_a_name(payload):
    with pytest.raises(ValueError, match="'name'"):
        Domain.from_dict(payload)


@pytest.mark.parametrize("payload", [{"objects": []}, {"name": ["p"], "objects": []}])
def test_problem_payload_requires_a_name(payload):
    with pytest.raises(ValueError, match="'name'"):
        Problem.from_dict(payload)
