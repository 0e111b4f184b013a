"""Problem diagram layout."""
from collections import Counter

import pytest

from pddlviz.graph.convert import (
    convert_problem_to_graph,
    convert_structure_to_graph,
    convert_text_to_graph,
    elements_to_dicts,
)
from pddlviz.graph.problem_graph import create_problem_graph
from pddlviz.graph.session import LayoutSession
from pddlviz.io.loader import load_text
from pddlviz.pddl.model import Problem
from pddlviz.pddl.parser import parse_pddl

ROBOT_PROBLEM = load_text("examples/robot-problem.pddl")

REPEATED = """
(define (problem corridor)
  (:domain rooms)
  (:objects room-a room-b - room)
  (:init
    (connected room-a room-b)
    (connected room-a room-b)
    (connected room-a room-b)
    (connected room-a room-b)
    (connected room-a room-b))
  (:goal (connected room-b room-a)))
"""


def _label(d):
    return d["text"]["children"][0]["children"][0]["text"]


def _geometry(dicts, shape=None):
    return [d for d in dicts if d["type"] == "geometry" and (shape is None or d["shape"] == shape)]


def _arrows(dicts):
    return [d for d in dicts if d["type"] == "arrow-line"]


def _dicts(text):
    return elements_to_dicts(convert_text_to_graph(text, LayoutSession()))


def test_repeated_init_fact_yields_one_node():
    dicts = _dicts(REPEATED)
    init_nodes = [
        d for d in _geometry(dicts, "ellipse")
        if _label(d) == "connected" and d["fill"] == "#f28b82"
    ]
    assert len(init_nodes) == 1
    node_id = init_nodes[0]["id"]
    touching = [a for a in _arrows(dicts) if node_id in (a["source"]["boundId"], a["target"]["boundId"])]
    assert len(touching) == 2


def test_init_and_goal_nodes_are_separate():
    dicts = _dicts(REPEATED)
    fills = Counter((_label(d), d["fill"]) for d in _geometry(dicts, "ellipse"))
    assert fills[("connected", "#f28b82")] == 1
    assert fills[("connected", "#81c995")] == 1


def test_robot_problem_nodes():
    dicts = _dicts(ROBOT_PROBLEM)
    group = dicts[0]
    assert group["type"] == "group"
    assert group["description"] == "Problem: deliver-one"
    assert group["data"]["type"] == "problem"
    assert group["data"]["domain"] == "robot-delivery"

    objects = [_label(d) for d in _geometry(dicts, "rectangle") if "description" not in d.get("data", {}).get("role", "")]
    assert objects == [
        "r1: robot", "hall: location", "kitchen: location", "lab: location", "box: package",
    ]

    ellipses = Counter(_label(d) for d in _geometry(dicts, "ellipse"))
    assert ellipses["connected"] == 1
    assert ellipses["package-at"] == 2  # init and goal
    assert ellipses["= 10"] == 1
    assert ellipses["= 0"] == 1
    assert ellipses["battery"] == 1
    assert ellipses["total-cost"] == 1


def test_descriptions_do_not_overlap():
    dicts = _dicts(ROBOT_PROBLEM)
    roles = {d["data"]["role"]: d for d in _geometry(dicts, "rectangle") if "role" in d.get("data", {})}
    init, goal = roles["problem-init-description"], roles["problem-goal-description"]
    assert _label(init) == "Init description"
    assert init["text"]["children"][0]["align"] == "left"
    assert init["data"]["showOnHover"] is True
    assert goal["points"][0][1] >= init["points"][1][1]
    assert dicts[0]["data"]["initDescriptionId"] == init["id"]
    assert dicts[0]["data"]["goalDescriptionId"] == goal["id"]


def test_block_geometry():
    problem = parse_pddl(ROBOT_PROBLEM)
    block = create_problem_graph(problem, 100, 100, LayoutSession())
    # six columns: four init predicates plus two comparators
    assert block.width == 720 + 100 + 1120
    dicts = elements_to_dicts(block.elements)
    first_object = next(d for d in _geometry(dicts, "rectangle") if _label(d) == "r1: robot")
    assert first_object["points"][0][0] == 920
    lowest = max(d["points"][1][1] for d in _geometry(dicts))
    assert lowest <= 100 + block.height


def test_no_dangling_edges():
    dicts = _dicts(ROBOT_PROBLEM)
    nodes = {d["id"] for d in _geometry(dicts)}
    for a in _arrows(dicts):
        assert a["source"]["boundId"] in nodes
        assert a["target"]["boundId"] in nodes
    ids = [d["id"] for d in dicts]
    assert len(ids) == len(set(ids))


def test_descriptions_come_from_payload():
    problem = Problem.from_dict({
        "name": "p",
        "domain_name": "d",
        "objects": [],
        "initDescription": "Everything starts here.",
        "goalDescription": "Finish there.",
    })
    dicts = elements_to_dicts(convert_problem_to_graph(problem, LayoutSession()))
    labels = [_label(d) for d in _geometry(dicts)]
    assert labels == ["Everything starts here.", "Finish there."]


def test_empty_problem_still_renders():
    dicts = _dicts("(define (problem nothing) (:domain d))")
    assert dicts[0]["data"]["name"] == "nothing"
    assert len(_geometry(dicts)) == 2
    assert _arrows(dicts) == []


def test_structure_dispatch_rejects_other_types():
    with pytest.raises(TypeError):
        convert_structure_to_graph("not a structure")


@pytest.mark.parametrize(
    "objects",
    ["a.b a_b - t", "a b - t a - u"],
)
def test_object_ids_stay_unique_when_names_collide(objects):
    text = f"(define (problem p) (:domain d) (:objects {objects}) (:init (link a b) (link a.b a_b)))"
    dicts = _dicts(text)
    ids = [d["id"] for d in dicts]
    assert len(ids) == len(set(ids))
    nodes = {d["id"] for d in _geometry(dicts)}
    for a in _arrows(dicts):
        assert a["source"]["boundId"] in nodes
        assert a["target"]["boundId"] in nodes


def test_repeated_object_name_anchors_on_first_node():
    dicts = _dicts("(define (problem p) (:domain d) (:objects a b - t a - u) (:init (on a b)))")
    first_a = next(d for d in _geometry(dicts, "rectangle") if _label(d) == "a: t")
    second_a = next(d for d in _geometry(dicts, "rectangle") if _label(d) == "a: u")
    bound = {a["source"]["boundId"] for a in _arrows(dicts)} | {a["target"]["boundId"] for a in _arrows(dicts)}
    assert first_a["id"] in bound
    assert second_a["id"] not in bound


def test_dense_bands_wrap_at_max_columns():
    names = " ".join(f"o{i}" for i in range(10))
    dicts = _dicts(f"(define (problem wide) (:domain d) (:objects {names} - thing))")
    boxes = {_label(d): d["points"][0] for d in _geometry(dicts, "rectangle")}
    # eight columns starting right of the 720-wide sidebar
    assert boxes["o0: thing"] == [920, 100]
    assert boxes["o7: thing"] == [920 + 7 * 200, 100]
    assert boxes["o8: thing"] == [920, 210]
    assert boxes["o9: thing"] == [1120, 210]
