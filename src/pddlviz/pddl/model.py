from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .expressions import (
    Expression,
    TypedParameter,
    argument_from_dict,
    expression_from_dict,
    strip_variable,
)


# ---------- helpers for remote payloads ----------
def _text_or_none(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _params_from_list(raw: Any) -> List[TypedParameter]:
    out: List[TypedParameter] = []
    for p in raw or []:
        if isinstance(p, str):
            out.append(TypedParameter(strip_variable(p.strip())))
        elif isinstance(p, dict) and "name" in p:
            out.append(TypedParameter(strip_variable(str(p["name"])), _text_or_none(p.get("type"))))
        else:
            raise ValueError(f"Bad typed parameter entry: {p!r}")
    return out


def _expressions(raw: Any) -> List[Expression]:
    if raw is None:
        return []
    if isinstance(raw, dict):
        raw = [raw]
    return [expression_from_dict(e) for e in raw]


@dataclass
class GenericSection:
    """A segment kept as label + literal text, without structural interpretation."""
    label: str
    entries: List[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return " ".join(self.entries)


@dataclass
class TypeDeclaration:
    name: str
    parent: Optional[str] = None


@dataclass
class PredicateSchema:
    name: str
    arguments: List[TypedParameter] = field(default_factory=list)

    @property
    def signature(self) -> str:
        args = " ".join(
            f"?{a.name} - {a.type}" if a.type else f"?{a.name}" for a in self.arguments
        )
        return f"({self.name}{' ' if args else ''}{args})"


@dataclass
class FunctionSchema:
    name: str
    arguments: List[TypedParameter] = field(default_factory=list)
    return_type: Optional[str] = None

    @property
    def signature(self) -> str:
        sig = PredicateSchema(self.name, self.arguments).signature
        return f"{sig} - {self.return_type}" if self.return_type else sig


@dataclass
class Action:
    name: str
    parameters: List[TypedParameter] = field(default_factory=list)
    preconditions: List[Expression] = field(default_factory=list)
    effects: List[Expression] = field(default_factory=list)
    description: Optional[str] = None
    durative: bool = False
    extras: List[GenericSection] = field(default_factory=list)
    # literal text of the condition/effect blocks, for outline rendering
    precondition_text: Optional[str] = None
    effect_text: Optional[str] = None

    @staticmethod
    def from_dict(y: Dict[str, Any]) -> "Action":
        name = _text_or_none(y.get("name"))
        if not name:
            raise ValueError("Action entry missing 'name'.")
        return Action(
            name=name,
            parameters=_params_from_list(y.get("parameters")),
            preconditions=_expressions(y.get("preconditions")),
            effects=_expressions(y.get("effects")),
            description=_text_or_none(y.get("description")) or _text_or_none(y.get("actionDescription")),
        )


@dataclass
class Domain:
    name: str
    requirements: List[str] = field(default_factory=list)
    types: List[TypeDeclaration] = field(default_factory=list)
    constants: List[TypedParameter] = field(default_factory=list)
    predicates: List[PredicateSchema] = field(default_factory=list)
    functions: List[FunctionSchema] = field(default_factory=list)
    actions: List[Action] = field(default_factory=list)
    sections: List[GenericSection] = field(default_factory=list)

    @staticmethod
    def from_dict(y: Dict[str, Any]) -> "Domain":
        if not isinstance(y, dict) or not isinstance(y.get("name"), str) or not isinstance(y.get("actions"), list):
            raise ValueError("Domain payload needs a 'name' and an 'actions' list.")

        # types: "name", "name: parent" or {name, parent}
        types: List[TypeDeclaration] = []
        for t in y.get("types", []) or []:
            if isinstance(t, str):
                if ":" in t:
                    a, b = [s.strip() for s in t.split(":", 1)]
                    types.append(TypeDeclaration(a, b or None))
                else:
                    types.append(TypeDeclaration(t.strip()))
            elif isinstance(t, dict) and t.get("name"):
                types.append(TypeDeclaration(str(t["name"]), _text_or_none(t.get("parent"))))
            else:
                raise ValueError(f"Bad type entry: {t!r}")

        preds = [
            PredicateSchema(str(p["name"]), _params_from_list(p.get("arguments")))
            for p in (y.get("predicates") or [])
        ]
        funcs = [
            FunctionSchema(
                str(f["name"]),
                _params_from_list(f.get("arguments")),
                _text_or_none(f.get("return_type")),
            )
            for f in (y.get("functions") or [])
        ]
        return Domain(
            name=y["name"],
            requirements=[str(r) for r in (y.get("requirements") or [])],
            types=types,
            predicates=preds,
            functions=funcs,
            actions=[Action.from_dict(a) for a in y["actions"]],
        )


@dataclass
class Metric:
    direction: str
    expression: Any  # Argument; kept loose so plain labels also fit

    @staticmethod
    def from_dict(y: Dict[str, Any]) -> "Metric":
        args = y.get("arguments") or []
        return Metric(
            direction=str(y.get("type") or "minimize"),
            expression=argument_from_dict(args[0]) if args else None,
        )


@dataclass
class Problem:
    name: str
    domain_name: Optional[str] = None
    requirements: List[str] = field(default_factory=list)
    objects: List[TypedParameter] = field(default_factory=list)
    init: List[Expression] = field(default_factory=list)
    goal: Optional[Expression] = None
    init_description: Optional[str] = None
    goal_description: Optional[str] = None
    metric: Optional[Metric] = None
    sections: List[GenericSection] = field(default_factory=list)

    @staticmethod
    def from_dict(y: Dict[str, Any]) -> "Problem":
        if not isinstance(y, dict) or not isinstance(y.get("name"), str) or not isinstance(y.get("objects"), list):
            raise ValueError("Problem payload needs a 'name' and an 'objects' list.")
        goal_raw = y.get("goal")
        metric_raw = y.get("metrics") or y.get("metric")
        return Problem(
            name=y["name"],
            domain_name=_text_or_none(y.get("domain_name")) or _text_or_none(y.get("domain")),
            requirements=[str(r) for r in (y.get("requirements") or [])],
            objects=_params_from_list(y["objects"]),
            init=_expressions(y.get("init")),
            goal=expression_from_dict(goal_raw) if goal_raw else None,
            init_description=_text_or_none(y.get("initDescription")),
            goal_description=_text_or_none(y.get("goalDescription")),
            metric=Metric.from_dict(metric_raw) if isinstance(metric_raw, dict) else None,
        )


@dataclass
class UnknownDefinition:
    """A `(define ...)` with no domain/problem header, kept for generic rendering."""
    text: str
    name: Optional[str] = None


@dataclass
class PddlDocument:
    domains: List[Domain] = field(default_factory=list)
    problems: List[Problem] = field(default_factory=list)
    unknown: List[UnknownDefinition] = field(default_factory=list)

    @property
    def primary(self) -> Optional[Union[Domain, Problem]]:
        if self.domains:
            return self.domains[0]
        if self.problems:
            return self.problems[0]
        return None
