"""
Problem blocks: init/goal description sidebar next to bands of init
comparators, init predicates, objects, goal predicates and goal comparators.

Nodes are reused per category (init vs goal): predicates by label, functions
by name and comparator operators by symbol plus literal operands.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from pddlviz.pddl.expressions import (
    Argument,
    FunctionExpr,
    format_function_label,
    literal_text,
    stringify_argument,
)
from pddlviz.pddl.model import Problem
from pddlviz.pddl.normalize import CollectedComparator, CollectedPredicate, Role, normalize

from .action_graph import Block, connect_arguments
from .config import LayoutConfig
from .elements import BlockBuilder, NodeBox, sanitize_id
from .session import LayoutSession

logger = logging.getLogger(__name__)

Position = Callable[[], Tuple[float, float]]


@dataclass
class _ComparatorRecord:
    index: int
    label: str
    key: Optional[str]
    left: Optional[NodeBox]
    right: Optional[NodeBox]


def _normalize_key(text: Optional[str]) -> str:
    return re.sub(r"\s+", " ", text).strip() if text else ""


def create_problem_graph(
    problem: Problem,
    start_x: float,
    start_y: float,
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> Block:
    session = session if session is not None else LayoutSession()
    cfg = config or LayoutConfig()
    sx, sy, gap = cfg.spacing_x, cfg.spacing_y, cfg.section_gap
    name = problem.name or "noname"

    group_id = sanitize_id(f"problem-{name}-{session.next_problem_group()}")
    init_text = (problem.init_description or "").strip() or "Init description"
    goal_text = (problem.goal_description or "").strip() or "Goal description"
    b = BlockBuilder(group_id, cfg)
    b.max_bottom = start_y

    init_n = normalize(problem.init, Role.INIT)
    goal_n = normalize([problem.goal], Role.GOAL)
    init_unique = init_n.unique_predicates()
    goal_unique = goal_n.unique_predicates()
    objects = list(problem.objects)

    counts = [
        len(init_unique) + len(init_n.comparators),
        len(objects),
        len(goal_unique) + len(goal_n.comparators),
    ]
    columns = min(cfg.problem_max_columns, max(1, *counts))
    problem_width = cfg.node_width + sx * (columns - 1)
    desc_height = cfg.node_height * 8
    desc_width = min(problem_width, cfg.node_width * 6)
    sidebar_gap = sx / 2
    content_x = start_x + desc_width + sidebar_gap

    predicate_nodes: Dict[Role, Dict[str, NodeBox]] = {Role.INIT: {}, Role.GOAL: {}}
    function_nodes: Dict[Role, Dict[str, NodeBox]] = {Role.INIT: {}, Role.GOAL: {}}
    comparator_nodes: Dict[Role, Dict[str, NodeBox]] = {Role.INIT: {}, Role.GOAL: {}}
    function_uses: List[Tuple[NodeBox, FunctionExpr]] = []

    next_y = start_y
    last_start = start_y
    last_rows = 1

    def function_node(fn: FunctionExpr, role: Role, position: Position, suffix: str) -> NodeBox:
        label = format_function_label(fn, include_arguments=False)
        known = function_nodes[role]
        node = known.get(label)
        if node is None:
            x, y = position()
            node_id = f"{group_id}-function-{role.value}-{suffix}-{session.next(group_id + ':fn')}-{fn.name}"
            node = b.ellipse(label, x, y, node_id, "function")
            known[label] = node
        function_uses.append((node, fn))
        return node

    def comparator_operand(arg: Optional[Argument], role: Role, position: Position,
                           suffix: str) -> Tuple[Optional[NodeBox], Optional[str]]:
        if arg is None:
            return None, None
        if isinstance(arg, FunctionExpr):
            return function_node(arg, role, position, suffix), None
        text = literal_text(arg)
        if text is not None:
            return None, text
        x, y = position()
        node_id = f"{group_id}-literal-{role.value}-{suffix}-{session.next(group_id + ':lit')}"
        return b.ellipse(stringify_argument(arg), x, y, node_id, "function"), None

    def place_comparators(items: List[CollectedComparator], role: Role, base_y: float) -> float:
        nonlocal last_start, last_rows
        if not items:
            return base_y
        cols = max(1, min(cfg.problem_max_columns, columns))
        placed = [0]

        def argument_position() -> Tuple[float, float]:
            index = placed[0]
            placed[0] += 1
            return content_x + (index % cols) * sx, base_y + (index // cols) * sy

        records: List[_ComparatorRecord] = []
        for index, item in enumerate(items):
            args = item.expr.arguments
            left, left_text = comparator_operand(
                args[0] if args else None, role, argument_position, f"comp-left-{index}")
            right, right_text = comparator_operand(
                args[1] if len(args) > 1 else None, role, argument_position, f"comp-right-{index}")
            symbol = item.expr.symbol
            segments = [s for s in (left_text, symbol, right_text) if s and s.strip()]
            label = " ".join(segments) if segments else symbol
            if item.negated:
                label = f"not {label}"
            lk, rk = _normalize_key(left_text), _normalize_key(right_text)
            key = f"{item.negated}|{symbol}|{lk}|{rk}" if (lk or rk) else None
            records.append(_ComparatorRecord(index, label, key, left, right))

        arg_rows = math.ceil(placed[0] / cols) if placed[0] else 0
        arg_height = arg_rows * sy
        row_gap = gap if arg_height > 0 else 0
        op_base_y = base_y + arg_height + row_gap
        op_count = 0
        known = comparator_nodes[role]

        for rec in records:
            node = known.get(rec.key) if rec.key else None
            if node is None:
                x = content_x + (op_count % cols) * sx
                y = op_base_y + (op_count // cols) * sy
                op_count += 1
                node_id = f"{group_id}-operator-{role.value}-{rec.index}-{session.next(group_id + ':op')}"
                node = b.ellipse(rec.label, x, y, node_id, "operator")
                if rec.key:
                    known[rec.key] = node
            if rec.left is not None:
                b.edge(rec.left, node, f"{group_id}-comp-edge-{role.value}-in-{session.next(group_id + ':edge')}")
            if rec.right is not None:
                b.edge(node, rec.right, f"{group_id}-comp-edge-{role.value}-out-{session.next(group_id + ':edge')}")

        op_height = (math.ceil(op_count / cols) if op_count else 0) * sy
        height = arg_height + row_gap + op_height
        b.max_bottom = max(b.max_bottom, op_base_y + op_height)
        last_start = base_y
        last_rows = max(last_rows, math.ceil(height / sy))
        return base_y + height + gap

    def place_predicates(items: List[CollectedPredicate], role: Role, base_y: float) -> float:
        nonlocal last_start, last_rows
        if not items:
            return base_y
        known = predicate_nodes[role]
        for index, p in enumerate(items):
            if p.label in known:
                continue
            x = content_x + (index % columns) * sx
            y = base_y + (index // columns) * sy
            node_id = f"{group_id}-{role.value}-{index}-{p.expr.name}"
            fill = "precondition" if role is Role.INIT else "effect"
            known[p.label] = b.ellipse(p.label, x, y, node_id, fill)
        rows = math.ceil(len(items) / columns)
        last_start = base_y
        last_rows = max(last_rows, rows)
        return base_y + rows * sy + gap

    next_y = place_comparators(init_n.comparators, Role.INIT, next_y)
    next_y = place_predicates(init_unique, Role.INIT, next_y)

    # objects
    object_nodes: Dict[str, NodeBox] = {}
    object_top = next_y
    object_rows = 0
    if objects:
        for index, obj in enumerate(objects):
            x = content_x + (index % columns) * sx
            y = object_top + (index // columns) * sy
            node = b.rectangle(
                obj.label, x, y, f"{group_id}-object-{index}-{obj.name}",
                cfg.parameter_width, cfg.parameter_height,
            )
            # a repeated name keeps its first node as the edge anchor
            object_nodes.setdefault(obj.name, node)
        object_rows = math.ceil(len(objects) / columns)
        last_start = object_top
        last_rows = max(last_rows, object_rows)
        next_y += object_rows * sy + gap
    object_bottom = object_top + object_rows * sy

    next_y = place_predicates(goal_unique, Role.GOAL, next_y)
    next_y = place_comparators(goal_n.comparators, Role.GOAL, next_y)

    # sidebar
    init_desc_id = f"{group_id}-init-description"
    goal_desc_id = f"{group_id}-goal-description"
    b.description(init_text, start_x, start_y, init_desc_id, desc_width, desc_height, "problem-init")
    goal_y = max(object_bottom + gap, start_y + desc_height + gap)
    b.description(goal_text, start_x, goal_y, goal_desc_id, desc_width, desc_height / 2, "problem-goal")

    # predicate / function -> object edges, one pass per occurrence
    counter = [0]
    for p in init_n.predicates + goal_n.predicates:
        node = predicate_nodes[p.role].get(p.label)
        if node is not None:
            connect_arguments(b, node, p.expr, object_nodes, f"{group_id}-edge", counter)
    for node, fn in function_uses:
        connect_arguments(b, node, fn, object_nodes, f"{group_id}-function-edge", counter)

    elements = b.finish(
        f"Problem: {name}",
        {
            "type": "problem",
            "name": problem.name,
            "domain": problem.domain_name,
            "initDescriptionId": sanitize_id(init_desc_id),
            "goalDescriptionId": sanitize_id(goal_desc_id),
        },
    )

    width = desc_width + sidebar_gap + problem_width
    bottom = max(b.max_bottom, last_start + last_rows * sy)
    height = bottom - start_y + cfg.node_height
    logger.debug(
        f"Problem '{name}': {len(elements)} elements, {len(init_unique)} init / "
        f"{len(goal_unique)} goal predicate nodes"
    )
    return Block(elements, width, height)
