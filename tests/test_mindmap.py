"""Mind-map outline."""
import logging

import pytest

from pddlviz.io.loader import load_text
from pddlviz.mindmap.outline import build_mind_map
from pddlviz.pddl.errors import EmptyInputError, UnbalancedParensError

ROBOT_DOMAIN = load_text("examples/robot-domain.pddl")
ROBOT_PROBLEM = load_text("examples/robot-problem.pddl")


def _texts(node):
    return [c.text for c in node.children]


def test_domain_outline():
    root = build_mind_map(ROBOT_DOMAIN)
    assert root.text == "Domain: robot-delivery"
    assert _texts(root) == ["Requirements", "Types", "Predicates", "Functions", "Actions"]
    assert _texts(root.find("Types")) == ["robot - object", "location - object", "package - object"]
    assert root.find("Predicates").children[0].text == "(at ?r - robot ?l - location)"
    assert _texts(root.find("Functions")) == ["(battery ?r - robot) - number", "(total-cost) - number"]

    move = root.find("Actions").find("move")
    assert _texts(move) == [
        "Parameters: ?r - robot, ?from - location, ?to - location",
        "Precondition: (and (at ?r ?from) (connected ?from ?to) (>= (battery ?r) 1))",
        "Effect: (and (not (at ?r ?from)) (at ?r ?to) (decrease (battery ?r) 1) (increase (total-cost) 1))",
    ]


def test_empty_blocks_show_none():
    root = build_mind_map("(define (domain bare) (:action idle))")
    assert _texts(root.find("Requirements")) == ["(none)"]
    assert _texts(root.find("Types")) == ["(none)"]
    assert root.find("Functions") is None
    assert _texts(root.find("Actions").find("idle")) == ["Parameters: (none)"]


def test_durative_action_outline():
    text = """
    (define (domain d)
      (:durative-action fly
        :parameters (?p - plane)
        :duration (= ?duration 4)
        :condition (at start (ready ?p))
        :effect (at end (landed ?p))))
    """
    fly = build_mind_map(text).find("Actions").find("fly")
    assert _texts(fly) == [
        "Parameters: ?p - plane",
        "Duration: (= ?duration 4)",
        "Condition: (at start (ready ?p))",
        "Effect: (at end (landed ?p))",
    ]


def test_problem_outline():
    root = build_mind_map(ROBOT_PROBLEM)
    assert root.text == "Problem: deliver-one"
    assert root.children[0].text == "Domain Reference: robot-delivery"
    objects = root.find("Objects")
    assert _texts(objects) == ["robot", "location", "package"]
    assert _texts(objects.find("location")) == ["hall", "kitchen", "lab"]
    init = _texts(root.find("Init"))
    assert init[0] == "(at r1 hall)"
    assert "(= (battery r1) 10)" in init
    assert _texts(root.find("Goal")) == ["(and (package-at box lab) (at r1 hall))"]
    assert _texts(root.find("Metric")) == ["minimize (total-cost)"]
    assert root.find(":metric") is None


def test_problem_without_domain_reference():
    root = build_mind_map("(define (problem p) (:objects a b) (:constraints))")
    assert root.children[0].text == "Domain Reference: (unknown)"
    assert _texts(root.find("Objects").find("object")) == ["a", "b"]
    assert _texts(root.find(":constraints")) == ["(empty)"]


def test_domain_and_problem_together():
    root = build_mind_map(ROBOT_DOMAIN + ROBOT_PROBLEM)
    assert root.text == "Domain: robot-delivery"
    problem = root.find("Problem: deliver-one")
    assert problem is not None
    assert problem.children[0].text == "Domain Reference: robot-delivery"


def test_unknown_definition(caplog):
    with caplog.at_level(logging.WARNING):
        root = build_mind_map("(define (widget w1) (:size 3))")
    assert root.text == "PDDL Diagram"
    assert _texts(root.find("Definition")) == ["(define (widget w1) (:size 3))"]


def test_to_dict_shape():
    d = build_mind_map("(define (domain bare))").to_dict()
    assert d["isRoot"] is True
    assert d["type"] == "mindmap"
    assert d["text"] == "Domain: bare"
    assert d["children"][0]["type"] == "mind_child"
    assert d["children"][0]["children"][0]["text"] == "(none)"


def test_parse_errors_propagate():
    with pytest.raises(EmptyInputError):
        build_mind_map("; nothing")
    with pytest.raises(UnbalancedParensError):
        build_mind_map("(define (domain d)))")
