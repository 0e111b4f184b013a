"""
Mind-map outline of a PDDL document: one tree with the primary domain (or
problem) at the root and every other definition attached as a labeled child.
Empty typed blocks show `(none)`, empty generic sections show `(empty)`.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pddlviz.pddl.expressions import TypedParameter, to_pddl
from pddlviz.pddl.model import Action, Domain, GenericSection, Problem
from pddlviz.pddl.parser import parse_document

DEFAULT_ROOT_LABEL = "PDDL Diagram"
NONE = "(none)"
EMPTY = "(empty)"


@dataclass
class MindNode:
    text: str
    children: List["MindNode"] = field(default_factory=list)
    is_root: bool = False
    layout: Optional[str] = None

    def add(self, text: str) -> "MindNode":
        child = MindNode(text)
        self.children.append(child)
        return child

    def find(self, text: str) -> Optional["MindNode"]:
        for c in self.children:
            if c.text == text:
                return c
        return None

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": "mindmap" if self.is_root else "mind_child",
            "text": self.text,
            "children": [c.to_dict() for c in self.children],
        }
        if self.is_root:
            d["isRoot"] = True
            d["layout"] = self.layout or "right"
            d["points"] = [[0, 0]]
        return d


def _param_text(p: TypedParameter, variable: bool = True) -> str:
    name = f"?{p.name}" if variable else p.name
    return f"{name} - {p.type}" if p.type else name


def _list_or_none(parent: MindNode, items: List[str]) -> None:
    if not items:
        parent.add(NONE)
        return
    for text in items:
        parent.add(text)


def append_generic(parent: MindNode, section: GenericSection) -> None:
    node = parent.add(section.label)
    if not section.entries:
        node.add(EMPTY)
        return
    for entry in section.entries:
        node.add(entry)


def append_action(parent: MindNode, action: Action) -> None:
    node = parent.add(action.name or "Unnamed Action")
    if action.description:
        node.add(f"Description: {action.description}")
    if action.parameters:
        node.add("Parameters: " + ", ".join(_param_text(p) for p in action.parameters))
    else:
        node.add(f"Parameters: {NONE}")

    variables = frozenset(p.name for p in action.parameters)
    for extra in action.extras:
        label = extra.label.lstrip(":").capitalize()
        node.add(f"{label}: {extra.text or EMPTY}")

    if action.precondition_text is not None:
        prefix = "Condition" if action.durative else "Precondition"
        node.add(f"{prefix}: {action.precondition_text}")
    elif action.preconditions:
        node.add("Precondition: " + " ".join(to_pddl(e, variables) for e in action.preconditions))
    if action.effect_text is not None:
        node.add(f"Effect: {action.effect_text}")
    elif action.effects:
        node.add("Effect: " + " ".join(to_pddl(e, variables) for e in action.effects))


def append_domain(root: MindNode, domain: Domain, is_primary: bool) -> None:
    node = root if is_primary else root.add(f"Domain: {domain.name or 'Unnamed Domain'}")

    _list_or_none(node.add("Requirements"), domain.requirements)
    _list_or_none(
        node.add("Types"),
        [f"{t.name} - {t.parent}" if t.parent else t.name for t in domain.types],
    )
    if domain.constants:
        _list_or_none(node.add("Constants"), [_param_text(c, variable=False) for c in domain.constants])
    _list_or_none(node.add("Predicates"), [p.signature for p in domain.predicates])
    if domain.functions:
        _list_or_none(node.add("Functions"), [f.signature for f in domain.functions])

    actions = node.add("Actions")
    if not domain.actions:
        actions.add(NONE)
    for action in domain.actions:
        append_action(actions, action)

    for section in domain.sections:
        append_generic(node, section)


def append_problem(root: MindNode, problem: Problem, is_primary: bool) -> None:
    node = root if is_primary else root.add(f"Problem: {problem.name or 'Unnamed Problem'}")
    node.add(f"Domain Reference: {problem.domain_name or '(unknown)'}")

    objects = node.add("Objects")
    by_type: "OrderedDict[str, List[str]]" = OrderedDict()
    for obj in problem.objects:
        by_type.setdefault(obj.type or "object", []).append(obj.name)
    if not by_type:
        objects.add(NONE)
    for typ, names in by_type.items():
        _list_or_none(objects.add(typ), names)

    _list_or_none(node.add("Init"), [to_pddl(e) for e in problem.init])
    _list_or_none(node.add("Goal"), [to_pddl(problem.goal)] if problem.goal is not None else [])

    if problem.metric is not None:
        metric = node.add("Metric")
        expr = problem.metric.expression
        metric.add(f"{problem.metric.direction} {to_pddl(expr)}" if expr is not None else problem.metric.direction)

    for section in problem.sections:
        if problem.metric is not None and section.label.lower() == ":metric":
            continue
        append_generic(node, section)


def build_mind_map(text: str) -> MindNode:
    """Parse `text` and build its outline. Parse errors propagate unchanged."""
    doc = parse_document(text)
    primary_domain = doc.domains[0] if doc.domains else None
    primary_problem = doc.problems[0] if doc.problems else None

    if primary_domain is not None and primary_domain.name:
        label = f"Domain: {primary_domain.name}"
    elif primary_problem is not None and primary_problem.name:
        label = f"Problem: {primary_problem.name}"
    else:
        label = DEFAULT_ROOT_LABEL
    root = MindNode(label, is_root=True, layout="right")

    if primary_domain is not None:
        append_domain(root, primary_domain, True)
    for domain in doc.domains[1:]:
        append_domain(root, domain, False)

    for i, problem in enumerate(doc.problems):
        append_problem(root, problem, is_primary=(i == 0 and primary_domain is None))

    for unknown in doc.unknown:
        root.add("Definition").add(unknown.text)
    return root
