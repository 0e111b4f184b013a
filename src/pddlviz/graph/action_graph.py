"""
Action blocks: title, description, precondition band, parameter band, effect
band and a numeric band holding small operator trees.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from pddlviz.pddl.expressions import (
    Argument,
    ComparatorExpr,
    CompositeExpr,
    FunctionExpr,
    NotExpr,
    NumberLiteral,
    NumericExpr,
    PredicateExpr,
    TypedParameter,
    argument_names,
    format_function_label,
    operator_label,
    stringify_argument,
)
from pddlviz.pddl.model import Action, Domain
from pddlviz.pddl.normalize import CollectedPredicate, Role, normalize

from .config import LayoutConfig
from .elements import BlockBuilder, Element, NodeBox, sanitize_id
from .session import LayoutSession

logger = logging.getLogger(__name__)


@dataclass
class Block:
    elements: List[Element]
    width: float
    height: float


def operands(expr) -> List[Argument]:
    """Direct operands of an operator-like node, parameters included."""
    if isinstance(expr, NotExpr):
        return [expr.argument]
    if isinstance(expr, CompositeExpr):
        return list(expr.items)
    return list(getattr(expr, "arguments", []) or [])


def _rows(count: int, columns: int) -> int:
    return math.ceil(count / columns)


def connect_arguments(builder: BlockBuilder, node: NodeBox, expr, anchors: Dict[str, NodeBox],
                      edge_prefix: str, counter: List[int]) -> None:
    """
    First argument: edge from its anchor into `node`; remaining arguments:
    edges from `node` out to their anchors. Unknown names are skipped.
    """
    names = argument_names(expr)
    for i, name in enumerate(names):
        anchor = anchors.get(name)
        if anchor is None:
            logger.warning(f"No node for argument '{name}' of {getattr(expr, 'name', '?')}; edge skipped")
            continue
        direction = "in" if i == 0 else "out"
        edge_id = f"{edge_prefix}-{node.id}-{direction}-{counter[0]}"
        counter[0] += 1
        if i == 0:
            builder.edge(anchor, node, edge_id)
        else:
            builder.edge(node, anchor, edge_id)


def create_action_graph(
    action: Action,
    start_x: float,
    start_y: float,
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> Block:
    session = session if session is not None else LayoutSession()
    cfg = config or LayoutConfig()
    cols = cfg.action_columns
    sx, sy, gap = cfg.spacing_x, cfg.spacing_y, cfg.section_gap

    group_id = sanitize_id(f"group-{action.name}-{session.next_action_group()}")
    description = (action.description or "").strip() or "Action description"
    b = BlockBuilder(group_id, cfg)

    b.rectangle(f"Action: {action.name}", start_x, start_y, f"{group_id}-title",
                cfg.action_width, cfg.node_height)

    pre = normalize(action.preconditions, Role.PRECONDITION)
    eff = normalize(action.effects, Role.EFFECT)
    pre_unique = pre.unique_predicates()
    eff_unique = eff.unique_predicates()

    next_y = start_y + sy

    # description
    description_id = f"{group_id}-description"
    desc_height = cfg.node_height * 2
    b.description(description, start_x, next_y, description_id, cfg.action_width, desc_height, "action")
    last_start = next_y
    last_rows = max(1, math.ceil(desc_height / sy))
    next_y += desc_height + gap

    predicate_nodes: Dict[Tuple[Role, str], NodeBox] = {}

    def place_predicates(items: List[CollectedPredicate], base_y: float) -> None:
        for index, p in enumerate(items):
            x = start_x + (index % cols) * sx
            y = base_y + (index // cols) * sy
            node_id = f"{group_id}-{p.role.value}-{index}-{p.expr.name}"
            predicate_nodes[(p.role, p.label)] = b.ellipse(p.label, x, y, node_id, p.role.value)

    if pre_unique:
        place_predicates(pre_unique, next_y)
        last_start, last_rows = next_y, _rows(len(pre_unique), cols)
        next_y += last_rows * sy + gap

    # parameters
    parameter_nodes: Dict[str, NodeBox] = {}
    if action.parameters:
        base_y = next_y
        for index, param in enumerate(action.parameters):
            x = start_x + (index % cols) * sx
            y = base_y + (index // cols) * sy
            node = b.rectangle(
                param.label, x, y, f"{group_id}-param-{index}-{param.name}",
                cfg.parameter_width, cfg.parameter_height,
            )
            parameter_nodes.setdefault(param.name, node)
        last_start, last_rows = base_y, _rows(len(action.parameters), cols)
        next_y += last_rows * sy + gap
    elif pre_unique:
        next_y += gap

    if eff_unique:
        base_y = next_y
        place_predicates(eff_unique, base_y)
        rows = _rows(len(eff_unique), cols)
        last_start, last_rows = base_y, rows
        next_y += rows * sy
        b.max_bottom = max(b.max_bottom, base_y + rows * sy)

    # numeric band: numeric effects plus precondition comparators
    function_nodes: Dict[str, Tuple[NodeBox, FunctionExpr]] = {}
    if eff.numeric_effects or pre.comparators:
        if eff_unique:
            next_y += gap
        band_y = next_y
        placed = [0]

        def position() -> Tuple[float, float]:
            index = placed[0]
            placed[0] += 1
            return start_x + (index % cols) * sx, band_y + (index // cols) * sy

        def operator_node(label: str, suffix: str, fill_role: str) -> NodeBox:
            x, y = position()
            return b.ellipse(label, x, y, f"{group_id}-operator-{suffix}-{session.next(group_id + ':op')}", fill_role)

        def literal_node(label: str, suffix: str) -> NodeBox:
            x, y = position()
            return b.ellipse(label, x, y, f"{group_id}-literal-{suffix}-{session.next(group_id + ':lit')}", "literal")

        def function_node(fn: FunctionExpr) -> NodeBox:
            key = fn.name + "-" + "|".join(stringify_argument(a) for a in fn.arguments)
            if key in function_nodes:
                return function_nodes[key][0]
            x, y = position()
            node = b.ellipse(
                format_function_label(fn), x, y,
                f"{group_id}-function-{key}-{session.next(group_id + ':fn')}", "function",
            )
            function_nodes[key] = (node, fn)
            return node

        def numeric_edge(source: NodeBox, target: NodeBox) -> None:
            b.edge(source, target, f"{group_id}-numeric-edge-{session.next(group_id + ':edge')}")

        def handle(parent: NodeBox, arg: Optional[Argument], suffix: str) -> None:
            if arg is None:
                return
            if isinstance(arg, TypedParameter):
                anchor = parameter_nodes.get(arg.name)
                if anchor is None:
                    anchor = literal_node(arg.label, f"param-{arg.name}-{suffix}")
                numeric_edge(anchor, parent)
                return
            if isinstance(arg, FunctionExpr):
                numeric_edge(function_node(arg), parent)
                return
            if isinstance(arg, NumberLiteral):
                numeric_edge(literal_node(arg.text, f"number-{suffix}"), parent)
                return
            if isinstance(arg, PredicateExpr):
                label = arg.name or "predicate"
            elif isinstance(arg, ComparatorExpr):
                label = arg.symbol
            else:
                label = operator_label(getattr(arg, "op", None), arg.kind)
            fill = "effect" if isinstance(arg, NumericExpr) else "operator"
            node = operator_node(label, f"{arg.kind}-{suffix}", fill)
            numeric_edge(node, parent)
            for i, child in enumerate(operands(arg)):
                handle(node, child, f"{suffix}-arg-{i}")

        for index, item in enumerate(eff.numeric_effects):
            expr = item.expr
            target = expr.target
            label = (
                f"{expr.op} {format_function_label(target, include_arguments=False)}"
                if isinstance(target, FunctionExpr) else expr.op
            )
            node = operator_node(label, f"numeric-{expr.op}-{index}", "effect")
            for i, arg in enumerate(expr.arguments):
                handle(node, arg, f"numeric-{index}-arg-{i}")

        for index, item in enumerate(pre.comparators):
            symbol = item.expr.symbol
            label = f"not {symbol}" if item.negated else symbol
            node = operator_node(label, f"comparator-{index}", "operator")
            for i, arg in enumerate(item.expr.arguments):
                handle(node, arg, f"comparator-{index}-arg-{i}")

        rows = _rows(max(1, placed[0]), cols)
        last_start, last_rows = band_y, rows
        next_y = band_y + rows * sy

    # predicate / function -> parameter edges
    counter = [0]
    for p in pre.predicates + eff.predicates:
        node = predicate_nodes.get((p.role, p.label))
        if node is not None:
            connect_arguments(b, node, p.expr, parameter_nodes, f"{group_id}-edge", counter)
    for node, fn in function_nodes.values():
        connect_arguments(b, node, fn, parameter_nodes, f"{group_id}-edge", counter)

    elements = b.finish(
        description,
        {
            "type": "action",
            "name": action.name,
            "description": description,
            "editableDescription": True,
            "descriptionElementId": sanitize_id(description_id),
        },
    )

    bottom = max(b.max_bottom, last_start + last_rows * sy)
    height = bottom - start_y + cfg.node_height
    logger.debug(f"Action '{action.name}': {len(elements)} elements, height {height}")
    return Block(elements, cfg.action_width, height)


def create_domain_graph(
    domain: Domain,
    session: Optional[LayoutSession] = None,
    config: Optional[LayoutConfig] = None,
) -> List[Element]:
    """Lay out every action of `domain` left to right, one group per action."""
    session = session if session is not None else LayoutSession()
    cfg = config or LayoutConfig()
    out: List[Element] = []
    x = cfg.start_x
    for action in domain.actions:
        block = create_action_graph(action, x, cfg.start_y, session, cfg)
        out.extend(block.elements)
        x += block.width + cfg.spacing_x
    return out
