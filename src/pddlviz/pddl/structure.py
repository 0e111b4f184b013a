"""
Structuring: classified `(define ...)` forms -> Domain / Problem objects.

Section and action keywords are looked up in closed tables; anything not in a
table is kept as a GenericSection (label + literal text) instead of failing.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, List, Optional

from .definitions import Definition, DefinitionKind
from .errors import SemanticParseError
from .expressions import (
    CompositeExpr,
    Expression,
    Scope,
    build_expression,
    build_operand,
    parse_typed_list,
)
from .model import (
    Action,
    Domain,
    FunctionSchema,
    GenericSection,
    Metric,
    PredicateSchema,
    Problem,
    TypeDeclaration,
    UnknownDefinition,
)
from .sexpr import SExpr, to_string

logger = logging.getLogger(__name__)


class Section(str, Enum):
    REQUIREMENTS = ":requirements"
    TYPES = ":types"
    CONSTANTS = ":constants"
    PREDICATES = ":predicates"
    FUNCTIONS = ":functions"
    ACTION = ":action"
    DURATIVE_ACTION = ":durative-action"
    DOMAIN = ":domain"
    OBJECTS = ":objects"
    INIT = ":init"
    GOAL = ":goal"
    METRIC = ":metric"
    CONSTRAINTS = ":constraints"
    GENERIC = "generic"


class ActionKey(str, Enum):
    PARAMETERS = ":parameters"
    PRECONDITION = ":precondition"
    CONDITION = ":condition"
    EFFECT = ":effect"
    DESCRIPTION = ":description"
    GENERIC = "generic"


_SECTIONS: Dict[str, Section] = {s.value: s for s in Section if s is not Section.GENERIC}
_ACTION_KEYS: Dict[str, ActionKey] = {k.value: k for k in ActionKey if k is not ActionKey.GENERIC}


def section_of(segment: SExpr) -> Section:
    if isinstance(segment, list) and segment and isinstance(segment[0], str):
        return _SECTIONS.get(segment[0].lower(), Section.GENERIC)
    return Section.GENERIC


def generic_section(segment: SExpr) -> GenericSection:
    if isinstance(segment, list) and segment and isinstance(segment[0], str):
        return GenericSection(segment[0], [to_string(x) for x in segment[1:]])
    return GenericSection("Section", [to_string(segment)])


def _atom_text(x: SExpr) -> str:
    return x if isinstance(x, str) else to_string(x)


def _unquote(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text


def _flatten_and(node: SExpr, scope: Scope) -> List[Expression]:
    expr = build_expression(node, scope)
    if isinstance(expr, CompositeExpr) and expr.op == "and":
        return list(expr.items)
    return [expr]


# =========================
#  Actions
# =========================

def structure_action(segment: List[SExpr], constants: Optional[Scope] = None) -> Action:
    """
    `(:action name :parameters (...) :precondition (...) :effect (...))`

    Each keyword consumes exactly the one element that follows it, except
    `:description`, whose bare words run up to the next keyword.
    """
    if len(segment) < 2 or not isinstance(segment[1], str):
        raise ValueError(f"Action is missing a name: {to_string(segment)}")
    durative = str(segment[0]).lower() == Section.DURATIVE_ACTION.value
    action = Action(name=segment[1], durative=durative)
    scope: Scope = dict(constants or {})
    pending: Dict[ActionKey, SExpr] = {}

    i = 2
    while i < len(segment):
        kw = segment[i]
        if not isinstance(kw, str) or not kw.startswith(":"):
            raise ValueError(f"Expected a keyword in action '{action.name}', got {_atom_text(kw)}")
        if i + 1 >= len(segment):
            raise ValueError(f"Keyword {kw} in action '{action.name}' has no value")
        value = segment[i + 1]
        i += 2

        key = _ACTION_KEYS.get(kw.lower(), ActionKey.GENERIC)
        if key is ActionKey.DESCRIPTION and isinstance(value, str):
            # free text runs until the next keyword
            words = [value]
            while i < len(segment) and isinstance(segment[i], str) and not segment[i].startswith(":"):
                words.append(segment[i])
                i += 1
            value = _unquote(" ".join(words))
        if key is ActionKey.PARAMETERS:
            if not isinstance(value, list):
                raise ValueError(f":parameters of action '{action.name}' must be a list")
            action.parameters = parse_typed_list(value, variables=True)
            scope.update({p.name: p.type for p in action.parameters})
        elif key is ActionKey.DESCRIPTION:
            action.description = " ".join(_atom_text(x) for x in value) if isinstance(value, list) else value
        elif key is ActionKey.GENERIC:
            action.extras.append(GenericSection(kw, [_atom_text(value)]))
        else:
            pending[key] = value

    # conditions and effects are built once the parameter types are known
    for key in (ActionKey.PRECONDITION, ActionKey.CONDITION):
        if key in pending:
            action.preconditions.extend(_flatten_and(pending[key], scope))
            action.precondition_text = to_string(pending[key])
    if ActionKey.EFFECT in pending:
        action.effects = _flatten_and(pending[ActionKey.EFFECT], scope)
        action.effect_text = to_string(pending[ActionKey.EFFECT])
    return action


# =========================
#  Domains
# =========================

def _predicate_schemas(entries: List[SExpr]) -> List[PredicateSchema]:
    out: List[PredicateSchema] = []
    for e in entries:
        if not isinstance(e, list) or not e or not isinstance(e[0], str):
            raise ValueError(f"Bad predicate declaration: {_atom_text(e)}")
        out.append(PredicateSchema(e[0], parse_typed_list(e[1:], variables=True)))
    return out


def _function_schemas(entries: List[SExpr]) -> List[FunctionSchema]:
    """`(f1 ?x) (f2) - number (f3)`: a `- type` applies to every function since the last one."""
    out: List[FunctionSchema] = []
    untyped: List[FunctionSchema] = []
    i = 0
    while i < len(entries):
        e = entries[i]
        if e == "-":
            if i + 1 >= len(entries):
                raise ValueError("Function list ends with '-' and no type")
            for f in untyped:
                f.return_type = _atom_text(entries[i + 1])
            untyped = []
            i += 2
            continue
        if not isinstance(e, list) or not e or not isinstance(e[0], str):
            raise ValueError(f"Bad function declaration: {_atom_text(e)}")
        f = FunctionSchema(e[0], parse_typed_list(e[1:], variables=True))
        out.append(f)
        untyped.append(f)
        i += 1
    return out


def structure_domain(definition: Definition) -> Domain:
    domain = Domain(name=definition.name or "")
    body = definition.body()

    # constants first so action arguments referring to them pick up their types
    for seg in body:
        if section_of(seg) is Section.CONSTANTS:
            domain.constants.extend(parse_typed_list(seg[1:]))
    constants: Scope = {c.name: c.type for c in domain.constants}

    for seg in body:
        section = section_of(seg)
        if section is Section.REQUIREMENTS:
            domain.requirements.extend(_atom_text(x) for x in seg[1:])
        elif section is Section.TYPES:
            domain.types.extend(TypeDeclaration(t.name, t.type) for t in parse_typed_list(seg[1:]))
        elif section is Section.CONSTANTS:
            continue
        elif section is Section.PREDICATES:
            domain.predicates.extend(_predicate_schemas(seg[1:]))
        elif section is Section.FUNCTIONS:
            domain.functions.extend(_function_schemas(seg[1:]))
        elif section in (Section.ACTION, Section.DURATIVE_ACTION):
            domain.actions.append(structure_action(seg, constants))
        else:
            logger.debug(f"Domain '{domain.name}': keeping {_head_text(seg)} as a generic section")
            domain.sections.append(generic_section(seg))

    logger.debug(
        f"Domain '{domain.name}': {len(domain.predicates)} predicates, "
        f"{len(domain.functions)} functions, {len(domain.actions)} actions"
    )
    return domain


# =========================
#  Problems
# =========================

def structure_problem(definition: Definition) -> Problem:
    problem = Problem(name=definition.name or "")
    body = definition.body()

    for seg in body:
        if section_of(seg) is Section.OBJECTS:
            problem.objects.extend(parse_typed_list(seg[1:]))
    scope: Scope = {o.name: o.type for o in problem.objects}

    for seg in body:
        section = section_of(seg)
        if section is Section.DOMAIN:
            if len(seg) > 1 and isinstance(seg[1], str):
                problem.domain_name = seg[1]
        elif section is Section.REQUIREMENTS:
            problem.requirements.extend(_atom_text(x) for x in seg[1:])
        elif section is Section.OBJECTS:
            continue
        elif section is Section.INIT:
            problem.init.extend(build_expression(e, scope) for e in seg[1:])
        elif section is Section.GOAL:
            goals = [build_expression(e, scope) for e in seg[1:]]
            if len(goals) == 1:
                problem.goal = goals[0]
            elif goals:
                problem.goal = CompositeExpr("and", goals)
        elif section is Section.METRIC:
            if len(seg) >= 3 and isinstance(seg[1], str):
                problem.metric = Metric(seg[1].lower(), build_operand(seg[2], scope))
            problem.sections.append(generic_section(seg))
        else:
            logger.debug(f"Problem '{problem.name}': keeping {_head_text(seg)} as a generic section")
            problem.sections.append(generic_section(seg))

    logger.debug(
        f"Problem '{problem.name}': {len(problem.objects)} objects, {len(problem.init)} init facts"
    )
    return problem


def _head_text(seg: SExpr) -> str:
    if isinstance(seg, list) and seg:
        return _atom_text(seg[0])
    return _atom_text(seg)


def structure_definition(definition: Definition):
    """Structure one definition, wrapping lower-level failures with its kind."""
    try:
        if definition.kind is DefinitionKind.DOMAIN:
            return structure_domain(definition)
        if definition.kind is DefinitionKind.PROBLEM:
            return structure_problem(definition)
    except ValueError as exc:
        raise SemanticParseError(definition.kind.value, str(exc)) from exc
    return UnknownDefinition(to_string(definition.expr), definition.name)
